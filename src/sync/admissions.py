"""Client for the external admissions service.

Pushes extracted leads to the "uploaded leads" intake endpoint and, when
intake returns a lead identifier, posts a status update summarizing the
lead. Both calls are optional and gated by configuration.
"""

from typing import Any

import httpx

from src.errors import SyncError
from src.models import LeadRecord
from src.utils.config import AdmissionsConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)


def lead_id_from(response: Any) -> Any:
    """Return the lead identifier from an intake response, if any."""
    if not isinstance(response, dict):
        return None
    return response.get("lead_id") or response.get("id") or None


def status_summary(lead_id: Any, record: LeadRecord) -> dict[str, Any]:
    """Build the status update body for a stored lead."""
    name = " ".join(part for part in (record.first_name, record.last_name) if part)
    return {
        "lead_id": lead_id,
        "lead_ai_response": {
            "name": name,
            "email": record.email,
            "phone": record.mobile_no,
        },
    }


class AdmissionsClient:
    """Bearer-authenticated client for the admissions endpoints.

    Args:
        config: Admissions configuration with URLs, token and push flag.
        client: Optional preconfigured httpx client.
    """

    def __init__(
        self, config: AdmissionsConfig, client: httpx.Client | None = None
    ) -> None:
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def _enabled_for(self, url: str | None) -> bool:
        return bool(self.config.push_enabled and url and self.config.token)

    @property
    def enabled(self) -> bool:
        return self._enabled_for(self.config.uploaded_leads_url)

    def _post(self, url: str, payload: dict[str, Any]) -> Any:
        try:
            response = self._client.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self.config.token}"},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SyncError(
                f"POST {url} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SyncError(f"POST {url} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def push_uploaded_lead(self, record: LeadRecord) -> Any:
        """Send an extracted lead to the intake endpoint.

        Returns:
            The decoded response body, or ``None`` when pushing is disabled.

        Raises:
            SyncError: If the request fails.
        """
        url = self.config.uploaded_leads_url
        if not self._enabled_for(url):
            return None
        body = self._post(url, record.to_dict())
        logger.info("Pushed lead for %s to admissions intake", record.image_url)
        return body

    def push_status_update(self, lead_id: Any, record: LeadRecord) -> Any:
        """Post a name/email/phone summary for an accepted lead.

        Returns:
            The decoded response body, or ``None`` when pushing is disabled.

        Raises:
            SyncError: If the request fails.
        """
        url = self.config.lead_status_url
        if not self._enabled_for(url):
            return None
        body = self._post(url, status_summary(lead_id, record))
        logger.info("Posted status update for admissions lead %s", lead_id)
        return body
