from auxdata.engine.async_store import AsyncStore
from auxdata.engine.store import PendingStore, Store

__all__ = ["AsyncStore", "PendingStore", "Store"]
