from .watchlist_db import WatchListDB

__all__ = ["WatchListDB"]
