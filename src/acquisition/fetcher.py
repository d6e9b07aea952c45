"""Download of source form images into transient local storage."""

import secrets
import string
import time
from pathlib import Path
from urllib.parse import urlparse

import httpx

from src.errors import FetchError
from src.models import ImageAsset
from src.utils.logger import get_logger

logger = get_logger(__name__)

_ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")
_DEFAULT_EXTENSION = ".jpg"
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def guess_extension(url: str) -> str:
    """Infer the image file extension from a URL path.

    Args:
        url: Source image URL; query string and fragment are ignored.

    Returns:
        A lower-cased extension from the whitelist, or ``.jpg``.
    """
    suffix = Path(urlparse(url).path).suffix.lower()
    return suffix if suffix in _ALLOWED_EXTENSIONS else _DEFAULT_EXTENSION


def _unique_name(extension: str) -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}{extension}"


class ImageFetcher:
    """Fetches remote images into a transient directory.

    Args:
        tmp_dir: Directory for downloaded files. Created if missing.
        timeout: Hard timeout in seconds for the whole request.
        client: Optional preconfigured httpx client.
    """

    def __init__(
        self,
        tmp_dir: Path | str,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.tmp_dir = Path(tmp_dir)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str) -> ImageAsset:
        """Download an image and write it verbatim to a unique local path.

        Args:
            url: HTTP(S) URL of the source image.

        Returns:
            The transient asset holding the downloaded bytes.

        Raises:
            FetchError: If the URL is not HTTP(S), the request fails or
                times out, the server answers with a non-success status,
                or the file cannot be written.
        """
        if urlparse(url).scheme not in ("http", "https"):
            raise FetchError(f"Unsupported image URL: {url}")

        try:
            response = self._client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out fetching {url}") from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Fetching {url} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Could not fetch {url}: {exc}") from exc

        dest = self.tmp_dir / _unique_name(guess_extension(url))
        try:
            dest.write_bytes(response.content)
        except OSError as exc:
            raise FetchError(f"Could not write {dest}: {exc}") from exc

        logger.info("Fetched %d bytes from %s into %s", len(response.content), url, dest)
        return ImageAsset(reference=url, path=dest)

    def release(self, asset: ImageAsset | None) -> None:
        """Delete a transient asset, ignoring files that are already gone."""
        if asset is None:
            return
        try:
            asset.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove transient file %s: %s", asset.path, exc)
        else:
            logger.debug("Released transient file %s", asset.path)
