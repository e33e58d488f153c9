from journalshare.application.use_cases.cache.inventory_cache import InventoryCacheUpdater

__all__ = ["InventoryCacheUpdater"]
