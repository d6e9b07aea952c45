"""Shared test fixtures for the admission form OCR test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from src.models import ImageAsset, Recognition
from src.storage.repository import LeadRepository

SAMPLE_FORM_TEXT = (
    "ADMISSION ENQUIRY FORM\n"
    "First Name: JOHN\n"
    "Last Name: o'brien\n"
    "Mobile No: +91 98765 43210\n"
    "Email ID: John.Doe@EXAMPLE.com\n"
    "School/College Name: St. Xavier's High School\n"
    "Current Grade: 12th\n"
    "Completion Year: 2025\n"
    "Father's Name: robert DOE\n"
    "Mother's Name: mary doe\n"
    "Program Interested In: BBA (Entrepreneurship)\n"
    "Comments: Wants hostel facility\n"
)


def make_png_bytes(width: int = 300, height: int = 200) -> bytes:
    """Create a synthetic RGB PNG with a white rectangle on black."""
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()


class FakeEngine:
    """Recognition engine returning canned output."""

    name = "fake"

    def __init__(
        self,
        text: str = SAMPLE_FORM_TEXT,
        record: dict | None = None,
        uses_conditioned_image: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.text = text
        self.record = record
        self.uses_conditioned_image = uses_conditioned_image
        self.error = error
        self.seen: list[ImageAsset] = []

    def start(self) -> None:
        pass

    def close(self) -> None:
        pass

    def recognize(self, asset: ImageAsset) -> Recognition:
        self.seen.append(asset)
        assert asset.path.exists()
        if self.error:
            raise self.error
        return Recognition(text=self.text, record=self.record)


@pytest.fixture
def sample_form_text() -> str:
    return SAMPLE_FORM_TEXT


@pytest.fixture
def png_bytes() -> bytes:
    return make_png_bytes()


@pytest.fixture
def sample_png(tmp_path: Path, png_bytes: bytes) -> ImageAsset:
    """A transient asset holding a small PNG."""
    path = tmp_path / "form.png"
    path.write_bytes(png_bytes)
    return ImageAsset(reference="https://example.com/form.png", path=path)


@pytest.fixture
def repository(tmp_path: Path) -> LeadRepository:
    """A lead repository backed by a SQLite file."""
    repo = LeadRepository(f"sqlite:///{tmp_path / 'leads.db'}")
    repo.create_schema()
    yield repo
    repo.dispose()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
