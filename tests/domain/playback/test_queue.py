"""Tests for queue derivation and index helpers."""

import random

import pytest

from music_session.domain.library.models import (
    FAVORITES_PLAYLIST_NAME,
    Collection,
    Song,
    SongId,
    favorites_collection,
)
from music_session.domain.playback.queue import (
    QueueDeriver,
    derive_queue,
    next_index,
    previous_index,
    random_other_index,
    resolve_song_refs,
)


@pytest.fixture
def songs() -> list[Song]:
    return [
        Song(id="s1", title="Blue Monday", artist="New Order"),
        Song(id="s2", title="Bizarre Love Triangle", artist="New Order"),
        Song(id="s3", title="Enjoy the Silence", artist="Depeche Mode"),
        Song(id="s4", title="Just Like Heaven", artist="The Cure"),
    ]


def ids(songs: list[Song]) -> list[str]:
    return [song.id for song in songs]


class TestResolveSongRefs:
    """Tests for resolve_song_refs function."""

    def test_mixed_refs_resolved_in_order(self, songs) -> None:
        """Full songs are kept as is, ids are looked up, unknown ids dropped."""
        inline = Song(id="x9", title="Inline", artist="Someone")
        refs = [SongId("s3"), inline, SongId("nope"), SongId("s1")]
        result = resolve_song_refs(refs, {s.id: s for s in songs})
        assert ids(result) == ["s3", "x9", "s1"]


class TestDeriveQueue:
    """Tests for derive_queue function."""

    def test_no_selection_returns_all_songs(self, songs) -> None:
        assert ids(derive_queue(songs, None, [], "")) == ["s1", "s2", "s3", "s4"]

    def test_returns_fresh_list(self, songs) -> None:
        result = derive_queue(songs, None, [], "")
        result.append(Song(id="zz", title="", artist=""))
        assert len(songs) == 4

    def test_favorites_selection_follows_favorites_order(self, songs) -> None:
        """Favorites resolve in favorites order; ids missing from the library drop."""
        selected = favorites_collection(["s4", "ghost", "s2"])
        result = derive_queue(songs, selected, ["s4", "ghost", "s2"], "")
        assert ids(result) == ["s4", "s2"]

    def test_favorites_selection_uses_live_favorites(self, songs) -> None:
        """The selected collection's ids are ignored in favour of the live set."""
        selected = Collection(id=None, name=FAVORITES_PLAYLIST_NAME, songs=(SongId("s1"),))
        assert ids(derive_queue(songs, selected, ["s3"], "")) == ["s3"]

    def test_playlist_resolves_refs(self, songs) -> None:
        playlist = Collection(id="p1", name="Mix", songs=(SongId("s2"), SongId("missing"), songs[0]))
        assert ids(derive_queue(songs, playlist, [], "")) == ["s2", "s1"]

    def test_empty_collection_gives_empty_queue(self, songs) -> None:
        playlist = Collection(id="p2", name="Empty")
        assert derive_queue(songs, playlist, [], "") == []

    @pytest.mark.parametrize(
        "term,expected",
        [
            ("new order", ["s1", "s2"]),  # artist
            ("SILENCE", ["s3"]),  # title, case-insensitive
            ("e", ["s1", "s2", "s3", "s4"]),
            ("zzz", []),
        ],
    )
    def test_search_matches_title_or_artist(self, songs, term, expected) -> None:
        assert ids(derive_queue(songs, None, [], term)) == expected

    def test_search_applies_after_selection(self, songs) -> None:
        playlist = Collection(id="p1", name="Mix", songs=(SongId("s1"), SongId("s3")))
        assert ids(derive_queue(songs, playlist, [], "order")) == ["s1"]


class TestQueueDeriver:
    """Tests for the memoised QueueDeriver."""

    def test_recomputes_only_when_inputs_change(self, library, favorites, monkeypatch) -> None:
        calls = []
        from music_session.domain.playback import queue as queue_module

        original = queue_module.derive_queue

        def counting(*args, **kwargs):
            calls.append(args)
            return original(*args, **kwargs)

        monkeypatch.setattr(queue_module, "derive_queue", counting)
        deriver = QueueDeriver(library, lambda: favorites.favorites)

        deriver.filtered_songs
        deriver.filtered_songs
        assert len(calls) == 1

        deriver.search_term = "cure"
        assert ids(deriver.filtered_songs) == ["s4"]
        assert len(calls) == 2

        favorites.replace(["s1"])
        deriver.filtered_songs
        assert len(calls) == 3

    def test_library_refresh_invalidates(self, library, favorites) -> None:
        deriver = QueueDeriver(library, lambda: favorites.favorites)
        assert len(deriver.filtered_songs) == 5
        library.reset()
        assert deriver.filtered_songs == []

    def test_index_of(self, queue) -> None:
        assert queue.index_of("s3") == 2
        assert queue.index_of("nope") == -1
        assert queue.index_of(None) == -1


class TestIndexHelpers:
    """Tests for next/previous index selection."""

    def test_sequential_next(self) -> None:
        assert next_index(0, 3, False, False, random.Random()) == 1

    def test_manual_next_wraps(self) -> None:
        assert next_index(2, 3, False, False, random.Random()) == 0

    def test_natural_end_stops(self) -> None:
        assert next_index(2, 3, False, True, random.Random()) is None

    def test_unknown_current_starts_at_first(self) -> None:
        assert next_index(-1, 3, False, True, random.Random()) == 0

    def test_empty_queue(self) -> None:
        assert next_index(0, 0, False, False, random.Random()) is None
        assert previous_index(0, 0, False, random.Random()) is None

    def test_previous_wraps_to_last(self) -> None:
        assert previous_index(0, 4, False, random.Random()) == 3
        assert previous_index(2, 4, False, random.Random()) == 1

    def test_shuffle_never_repeats_current(self) -> None:
        rng = random.Random(1)
        for _ in range(100):
            assert random_other_index(2, 5, rng) != 2
            assert next_index(0, 2, True, True, rng) == 1

    def test_shuffle_single_song(self) -> None:
        assert random_other_index(0, 1, random.Random()) == 0
