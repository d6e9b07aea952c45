"""Remote recognition through an OpenAI-compatible vision-language model.

The raw (unconditioned) image is sent together with an extraction
instruction. When the model answers with a JSON object matching the
lead schema, the object is returned alongside the text so the field
extractor can be bypassed.
"""

import base64
import json
import mimetypes
import re
from typing import Any

import httpx

from src.errors import RecognitionError
from src.models import ImageAsset, LeadRecord, Recognition
from src.utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a high-accuracy OCR engine for handwritten and printed admission "
    "forms. Read every field exactly as written. Do not guess missing values."
)
EXTRACTION_PROMPT = (
    "Extract the student details from this admission form. Reply with a single "
    "JSON object using exactly these keys: {keys}. Use an empty string for any "
    "field that is blank or unreadable. For program_interested_in use one of "
    '"BBA", "B.Des", "B.Sc AI & ML" or "". Do not add commentary.'
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_structured_reply(content: str) -> dict[str, Any] | None:
    """Parse a model reply as a JSON object, tolerating a Markdown fence.

    Args:
        content: Message content returned by the model.

    Returns:
        The decoded object, or ``None`` if the reply is not a JSON object.
    """
    text = content.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _data_url(asset: ImageAsset) -> str:
    mime = mimetypes.guess_type(asset.path.name)[0] or "image/jpeg"
    payload = base64.b64encode(asset.path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{payload}"


class VisionEngine:
    """Stateless recognition through a hosted vision-language model.

    Args:
        api_key: Bearer credential for the model API.
        model: Model identifier.
        base_url: API root of an OpenAI-compatible service.
        timeout: Per-request timeout in seconds.
        client: Optional preconfigured httpx client.
    """

    name = "vision"
    uses_conditioned_image = False

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def start(self) -> None:
        if not self.api_key:
            raise RecognitionError("Vision engine requires an API key")
        logger.info("Vision engine ready (model=%s)", self.model)

    def close(self) -> None:
        self._client.close()

    def _request_body(self, asset: ImageAsset) -> dict[str, Any]:
        instruction = EXTRACTION_PROMPT.format(
            keys=", ".join(n for n in LeadRecord.field_names() if n != "image_url")
        )
        return {
            "model": self.model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instruction},
                        {"type": "image_url", "image_url": {"url": _data_url(asset)}},
                    ],
                },
            ],
        }

    def recognize(self, asset: ImageAsset) -> Recognition:
        """Send the raw image to the model and return its reply.

        Args:
            asset: Transient asset holding the original downloaded image.

        Returns:
            Recognition with the reply text and, when the reply is a JSON
            object, the decoded record.

        Raises:
            RecognitionError: On network, HTTP or response-format failures.
        """
        try:
            body = self._request_body(asset)
        except OSError as exc:
            raise RecognitionError(f"Cannot read {asset.path}: {exc}") from exc

        try:
            response = self._client.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as exc:
            raise RecognitionError(
                f"Vision model returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise RecognitionError(f"Vision model request failed: {exc}") from exc
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise RecognitionError(f"Malformed vision model response: {exc}") from exc

        text = content if isinstance(content, str) else ""
        record = parse_structured_reply(text)
        logger.info(
            "Vision model returned %d characters (%s)",
            len(text),
            "structured" if record is not None else "free text",
        )
        return Recognition(text=text, record=record)
