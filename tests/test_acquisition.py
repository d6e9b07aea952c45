"""Tests for downloading source images into transient storage."""

import re
from pathlib import Path

import httpx
import pytest

from src.acquisition.fetcher import ImageFetcher, guess_extension
from src.errors import FetchError
from src.models import ImageAsset


def _fetcher(tmp_path: Path, handler) -> ImageFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ImageFetcher(tmp_path / "tmp", timeout=5.0, client=client)


class TestGuessExtension:
    """Tests for extension inference from URLs."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://bucket.s3.amazonaws.com/forms/a.png", ".png"),
            ("https://cdn.test/a.JPEG?X-Amz-Signature=abc", ".jpeg"),
            ("https://cdn.test/a.webp#frag", ".webp"),
            ("https://cdn.test/a.gif", ".jpg"),
            ("https://cdn.test/download", ".jpg"),
            ("https://cdn.test/a.png/view", ".jpg"),
        ],
    )
    def test_guess_extension(self, url: str, expected: str) -> None:
        assert guess_extension(url) == expected


class TestImageFetcher:
    """Tests for the ImageFetcher class."""

    def test_creates_tmp_dir(self, tmp_path: Path) -> None:
        _fetcher(tmp_path, lambda r: httpx.Response(200))
        assert (tmp_path / "tmp").is_dir()

    def test_fetch_writes_body_verbatim(self, tmp_path: Path, png_bytes: bytes) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(200, content=png_bytes))
        asset = fetcher.fetch("https://cdn.test/forms/a.png?sig=1")

        assert asset.reference == "https://cdn.test/forms/a.png?sig=1"
        assert asset.path.parent == tmp_path / "tmp"
        assert asset.path.read_bytes() == png_bytes
        assert re.fullmatch(r"\d{13}-[a-z0-9]{6}\.png", asset.path.name)

    def test_fetch_names_are_unique(self, tmp_path: Path) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(200, content=b"x"))
        paths = {fetcher.fetch("https://cdn.test/a.jpg").path for _ in range(20)}
        assert len(paths) == 20

    def test_non_success_status(self, tmp_path: Path) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(403))
        with pytest.raises(FetchError, match="HTTP 403"):
            fetcher.fetch("https://cdn.test/a.jpg")
        assert list((tmp_path / "tmp").iterdir()) == []

    def test_timeout(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(FetchError, match="Timed out"):
            _fetcher(tmp_path, handler).fetch("https://cdn.test/a.jpg")

    def test_transport_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(FetchError, match="Could not fetch"):
            _fetcher(tmp_path, handler).fetch("https://cdn.test/a.jpg")

    def test_rejects_non_http_url(self, tmp_path: Path) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(200))
        with pytest.raises(FetchError, match="Unsupported image URL"):
            fetcher.fetch("file:///etc/passwd")

    def test_unwritable_destination(self, tmp_path: Path) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(200, content=b"x"))
        fetcher.tmp_dir = tmp_path / "missing" / "dir"
        with pytest.raises(FetchError, match="Could not write"):
            fetcher.fetch("https://cdn.test/a.jpg")

    def test_release_deletes_file(self, tmp_path: Path) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(200, content=b"x"))
        asset = fetcher.fetch("https://cdn.test/a.jpg")
        fetcher.release(asset)
        assert not asset.path.exists()

    def test_release_tolerates_missing_and_none(self, tmp_path: Path) -> None:
        fetcher = _fetcher(tmp_path, lambda r: httpx.Response(200))
        fetcher.release(ImageAsset(reference="u", path=tmp_path / "gone.jpg"))
        fetcher.release(None)
