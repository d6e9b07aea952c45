"""Client for the batch source feed listing newly uploaded forms."""

from typing import Any

import httpx

from src.errors import SourceFeedError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SourceFeedClient:
    """Queries the source feed for form images in the ``new`` state.

    Args:
        url: Feed endpoint.
        token: Bearer credential, if the feed requires one.
        timeout: Request timeout in seconds.
        client: Optional preconfigured httpx client.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.token = token
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def fetch_new_references(self) -> list[str]:
        """Return the image URLs of forms awaiting processing.

        The feed may answer with a list of entries or with an object whose
        ``data`` key holds that list; entries without ``s3_url`` are skipped.

        Raises:
            SourceFeedError: If the feed request fails or is not JSON.
        """
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = self._client.post(
                self.url, json={"status": "new"}, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            payload: Any = response.json()
        except httpx.HTTPStatusError as exc:
            raise SourceFeedError(
                f"Source feed returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceFeedError(f"Source feed request failed: {exc}") from exc
        except ValueError as exc:
            raise SourceFeedError("Source feed returned invalid JSON") from exc

        if isinstance(payload, dict):
            payload = payload.get("data")
        entries = payload if isinstance(payload, list) else []
        references = [
            entry["s3_url"]
            for entry in entries
            if isinstance(entry, dict) and entry.get("s3_url")
        ]
        logger.info("Source feed listed %d new forms", len(references))
        return references
