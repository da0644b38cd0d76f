from app.repositories.store_scope import StoreContext, StoreRepository

__all__ = ["StoreContext", "StoreRepository"]
