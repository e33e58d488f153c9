from journalshare.application.use_cases.entries.entry_service import EntryService

__all__ = ["EntryService"]
