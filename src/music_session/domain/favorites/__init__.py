"""Favorites domain - optimistic favorites synchronized with the backend."""

from .sync import Favorites, FavoritesSynchronizer, restored, toggled

__all__ = ["Favorites", "FavoritesSynchronizer", "restored", "toggled"]
