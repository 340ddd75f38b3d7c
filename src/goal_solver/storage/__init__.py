from goal_solver.storage.lookup_store import LookupStore, StoredPlay

__all__ = ['LookupStore', 'StoredPlay']
