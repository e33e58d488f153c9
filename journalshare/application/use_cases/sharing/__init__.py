from journalshare.application.use_cases.sharing.sharing_service import SharingService

__all__ = ["SharingService"]
