"""Tests for media URL formatting."""

import pytest

from music_session.domain.library.urls import ImageSize, format_url

BASE = "http://localhost:3000"


def fmt(ref, **kwargs):
    kwargs.setdefault("api_base_url", BASE)
    kwargs.setdefault("cloudinary_cloud_name", "demo")
    return format_url(ref, **kwargs)


class TestFormatUrl:
    @pytest.mark.parametrize("ref", [None, "", 42])
    def test_empty_or_invalid(self, ref) -> None:
        assert fmt(ref) is None

    def test_absolute_url_passes_through(self) -> None:
        assert fmt("https://cdn.example.com/a.mp3") == "https://cdn.example.com/a.mp3"

    def test_cloudinary_path_is_audio(self) -> None:
        assert (
            fmt("MusicPlayerPRO/songs/a.mp3")
            == "https://res.cloudinary.com/demo/video/upload/MusicPlayerPRO/songs/a.mp3"
        )

    def test_cloudinary_default_cloud(self) -> None:
        url = format_url("MusicPlayerPRO/songs/a.mp3")
        assert url.startswith("https://res.cloudinary.com/dzp9rltpr/video/upload/")

    def test_cloudinary_artwork_gets_size(self) -> None:
        assert fmt("MusicPlayerPRO/covers/a.jpg", size=ImageSize.THUMBNAIL) == (
            "https://res.cloudinary.com/demo/image/upload/"
            "w_300,h_300,c_fill,q_auto,f_auto/MusicPlayerPRO/covers/a.jpg"
        )

    def test_existing_transform_kept(self) -> None:
        url = "https://res.cloudinary.com/demo/image/upload/w_50/a.jpg"
        assert fmt(url, size=ImageSize.LARGE) == url

    @pytest.mark.parametrize(
        "ref,base",
        [("/uploads/a.mp3", BASE), ("uploads/a.mp3", BASE), ("/uploads/a.mp3", BASE + "/")],
    )
    def test_relative_paths_single_slash(self, ref, base) -> None:
        assert fmt(ref, api_base_url=base) == "http://localhost:3000/uploads/a.mp3"

    @pytest.mark.parametrize(
        "ref",
        ["/uploads/a.mp3", "MusicPlayerPRO/songs/a.mp3", "https://x.test/a.mp3"],
    )
    def test_idempotent(self, ref) -> None:
        once = fmt(ref)
        assert fmt(once) == once

    def test_idempotent_with_size(self) -> None:
        once = fmt("MusicPlayerPRO/covers/a.jpg", size=ImageSize.LARGE)
        assert fmt(once, size=ImageSize.LARGE) == once
