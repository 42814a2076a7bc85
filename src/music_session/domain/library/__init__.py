"""Library domain - songs, collections and the cached library.

This domain handles:
- Song, collection and banner models
- Media URL formatting (Cloudinary and server-relative paths)
- Cache-then-network library loading
"""

# Models
from .models import (
    FAVORITES_PLAYLIST_NAME,
    Banner,
    Collection,
    Song,
    SongId,
    SongRef,
    album_from_json,
    collection_from_json,
    favorites_collection,
    song_from_json,
)

# URLs
from .urls import ImageSize, format_url

# Cache
from .cache import FetchResult, LibraryCache

__all__ = [
    "FAVORITES_PLAYLIST_NAME",
    "Banner",
    "Collection",
    "Song",
    "SongId",
    "SongRef",
    "album_from_json",
    "collection_from_json",
    "favorites_collection",
    "song_from_json",
    "ImageSize",
    "format_url",
    "FetchResult",
    "LibraryCache",
]
