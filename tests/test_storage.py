"""Tests for the lead repository."""

import json

import pytest
from sqlalchemy import Text, select

from src.errors import PersistenceError
from src.models import LeadRecord
from src.storage.repository import LeadRepository, student_forms


def _record(**overrides: str) -> LeadRecord:
    values = {
        "first_name": "John",
        "last_name": "Doe",
        "mobile_no": "9876543210",
        "email": "john@example.com",
        "program_interested_in": "BBA",
        "image_url": "https://cdn.test/a.jpg",
    }
    values.update(overrides)
    return LeadRecord(**values)


class TestLeadRepository:
    """Tests for the LeadRepository class."""

    def test_insert_returns_id(self, repository: LeadRepository) -> None:
        lead_id = repository.insert(_record(), "First Name: John")
        assert isinstance(lead_id, int)
        assert lead_id >= 1

    def test_roundtrip(self, repository: LeadRepository) -> None:
        record = _record(comments="hostel")
        lead_id = repository.insert(record, "raw text")

        stored = repository.get(lead_id)

        assert stored is not None
        assert stored.id == lead_id
        assert stored.record == record
        assert stored.raw_text == "raw text"
        assert stored.created_at is not None

    def test_parsed_profile_serialized(self, repository: LeadRepository) -> None:
        lead_id = repository.insert(_record(), "raw")
        with repository.engine.connect() as conn:
            row = conn.execute(
                select(student_forms.c.parsed_profile).where(student_forms.c.id == lead_id)
            ).one()
        assert json.loads(row.parsed_profile)["first_name"] == "John"

    def test_resubmission_creates_new_row(self, repository: LeadRepository) -> None:
        first = repository.insert(_record(), "raw")
        second = repository.insert(_record(), "raw")
        assert first != second

    def test_empty_record_stored(self, repository: LeadRepository) -> None:
        lead_id = repository.insert(LeadRecord(image_url="https://cdn.test/b.jpg"), "")
        stored = repository.get(lead_id)
        assert stored is not None
        assert stored.record.first_name == ""

    def test_get_missing(self, repository: LeadRepository) -> None:
        assert repository.get(999) is None

    def test_create_schema_is_idempotent(self, repository: LeadRepository) -> None:
        repository.create_schema()

    def test_insert_without_schema_fails(self, tmp_path) -> None:
        repo = LeadRepository(f"sqlite:///{tmp_path / 'empty.db'}")
        with pytest.raises(PersistenceError, match="Cannot store lead"):
            repo.insert(_record(), "raw")
        repo.dispose()

    @pytest.mark.parametrize(
        "column",
        [
            "first_name",
            "last_name",
            "email",
            "school_college_name",
            "current_grade",
            "completion_year",
            "father_name",
            "mother_name",
            "comments",
        ],
    )
    def test_captured_text_columns_are_unbounded(self, column: str) -> None:
        assert isinstance(student_forms.c[column].type, Text)

    def test_long_ocr_line_stored(self, repository: LeadRepository) -> None:
        noisy = "St. Xavier's High School " * 40
        lead_id = repository.insert(_record(school_college_name=noisy), "raw")
        assert repository.get(lead_id).record.school_college_name == noisy
