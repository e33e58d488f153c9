from journalshare.application.use_cases.journals.journal_service import JournalService

__all__ = ["JournalService"]
