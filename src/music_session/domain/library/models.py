"""
Music library domain models.

Contains data structures for songs, playlists/albums and the home banner,
plus conversion to and from the backend's JSON shapes.
"""

from typing import Any, Dict, Iterable, NamedTuple, Optional, Union

# Reserved name of the client-side favorites collection
FAVORITES_PLAYLIST_NAME = "Favorite Songs"

DEFAULT_COVER_IMG = "https://images.unsplash.com/photo-1470225620780-dba8ba36b745?w=800&auto=format&fit=crop&q=60"


class Song(NamedTuple):
    """Represents a song as served by the backend.

    Songs are never mutated by the engine; a library refresh replaces them.
    cover_img and audio_url may be absolute URLs or storage-relative paths,
    see urls.format_url.
    """

    id: str
    title: str
    artist: str
    album: Optional[str] = None
    duration: str = ""  # Display label, e.g. "3:45"
    cover_img: Optional[str] = None
    audio_url: Optional[str] = None
    category: str = "General"


class SongId(NamedTuple):
    """Bare song identifier inside a collection, resolved against the library."""

    id: str


# A collection entry is either a full song object or a bare identifier
SongRef = Union[Song, SongId]


class Collection(NamedTuple):
    """A playlist or an album normalised to the same shape.

    The synthetic favorites collection has id=None and
    name=FAVORITES_PLAYLIST_NAME; its songs come from the favorites set.
    """

    id: Optional[str]
    name: str
    songs: tuple[SongRef, ...] = ()
    cover_img: Optional[str] = None
    description: Optional[str] = None
    is_album: bool = False
    artist: Optional[str] = None

    @property
    def is_favorites(self) -> bool:
        return self.name == FAVORITES_PLAYLIST_NAME


class Banner(NamedTuple):
    """Home page banner."""

    image_url: str = ""
    title: str = "Your Music"
    subtitle: str = "Discover and enjoy your personal music collection."
    button_text: str = "Play Now"
    button_link: str = "/library"


def _json_id(data: Dict[str, Any]) -> str:
    return str(data.get("_id") or data.get("id") or "")


def song_from_json(data: Dict[str, Any]) -> Song:
    """Convert a backend song document to a Song.

    Accepts both '_id' (database documents) and 'id' (cached snapshots).
    """
    return Song(
        id=_json_id(data),
        title=str(data.get("title") or ""),
        artist=str(data.get("artist") or ""),
        album=data.get("album") or None,
        duration=str(data.get("duration") or ""),
        cover_img=data.get("coverImg") or None,
        audio_url=data.get("audioUrl") or None,
        category=data.get("category") or "General",
    )


def song_to_json(song: Song) -> Dict[str, Any]:
    """Convert a Song back to the backend's JSON shape (for cache snapshots)."""
    return {
        "_id": song.id,
        "title": song.title,
        "artist": song.artist,
        "album": song.album,
        "duration": song.duration,
        "coverImg": song.cover_img,
        "audioUrl": song.audio_url,
        "category": song.category,
    }


def song_ref_from_json(entry: Any) -> Optional[SongRef]:
    """Convert a collection entry (populated document or bare id) to a SongRef.

    Returns:
        Song for mappings, SongId for scalar ids, None for anything unusable
    """
    if isinstance(entry, dict):
        if not _json_id(entry):
            return None
        return song_from_json(entry)
    if isinstance(entry, (str, int)) and str(entry):
        return SongId(str(entry))
    return None


def song_ref_to_json(ref: SongRef) -> Any:
    if isinstance(ref, Song):
        return song_to_json(ref)
    return ref.id


def _song_refs(entries: Optional[Iterable[Any]]) -> tuple[SongRef, ...]:
    refs = (song_ref_from_json(entry) for entry in (entries or []))
    return tuple(ref for ref in refs if ref is not None)


def collection_from_json(data: Dict[str, Any]) -> Collection:
    """Convert a backend playlist document (or a cached collection) to a Collection."""
    if data.get("isAlbum"):
        return album_from_json(data)
    return Collection(
        id=_json_id(data) or None,
        name=str(data.get("name") or ""),
        songs=_song_refs(data.get("songs")),
        cover_img=data.get("imageUrl") or data.get("coverImg") or None,
        description=data.get("description") or None,
    )


def album_from_json(data: Dict[str, Any]) -> Collection:
    """Normalise a backend album document into a playlist-like Collection.

    The album title becomes the collection name and is_album marks its origin.
    """
    return Collection(
        id=_json_id(data) or None,
        name=str(data.get("name") or data.get("title") or ""),
        songs=_song_refs(data.get("songs")),
        cover_img=data.get("coverImg") or data.get("imageUrl") or None,
        description=data.get("description") or None,
        is_album=True,
        artist=data.get("artist") or None,
    )


def collection_to_json(collection: Collection) -> Dict[str, Any]:
    """Convert a Collection to JSON for cache snapshots."""
    data: Dict[str, Any] = {
        "_id": collection.id,
        "name": collection.name,
        "songs": [song_ref_to_json(ref) for ref in collection.songs],
        "imageUrl": collection.cover_img,
        "description": collection.description,
    }
    if collection.is_album:
        data["isAlbum"] = True
        data["title"] = collection.name
        data["artist"] = collection.artist
    return data


def favorites_collection(favorite_ids: Iterable[str]) -> Collection:
    """Build the synthetic favorites collection (no server identity)."""
    return Collection(
        id=None,
        name=FAVORITES_PLAYLIST_NAME,
        songs=tuple(SongId(str(song_id)) for song_id in favorite_ids),
    )


def banner_from_json(data: Optional[Dict[str, Any]]) -> Optional[Banner]:
    """Convert the banner document; None when the backend returned nothing."""
    if not data:
        return None
    defaults = Banner()
    return Banner(
        image_url=data.get("imageUrl") or defaults.image_url,
        title=data.get("title") or defaults.title,
        subtitle=data.get("subtitle") or defaults.subtitle,
        button_text=data.get("buttonText") or defaults.button_text,
        button_link=data.get("buttonLink") or defaults.button_link,
    )


def favorite_ids_from_json(entries: Optional[Iterable[Any]]) -> list[str]:
    """Extract favorite song ids from populated documents or bare ids."""
    ids = []
    for entry in entries or []:
        if isinstance(entry, dict):
            song_id = _json_id(entry)
        else:
            song_id = str(entry) if entry is not None else ""
        if song_id and song_id not in ids:
            ids.append(song_id)
    return ids
