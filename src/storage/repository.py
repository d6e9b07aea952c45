"""Durable storage of extracted leads using SQLAlchemy Core."""

import json
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    insert,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src.errors import PersistenceError
from src.models import LeadRecord, PersistedLead
from src.utils.logger import get_logger

logger = get_logger(__name__)

metadata = MetaData()

student_forms = Table(
    "student_forms",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("image_url", Text, nullable=False),
    Column("first_name", Text, nullable=False, default=""),
    Column("last_name", Text, nullable=False, default=""),
    Column("mobile_no", String(32), nullable=False, default=""),
    Column("email", Text, nullable=False, default=""),
    Column("school_college_name", Text, nullable=False, default=""),
    Column("current_grade", Text, nullable=False, default=""),
    Column("completion_year", Text, nullable=False, default=""),
    Column("father_name", Text, nullable=False, default=""),
    Column("mother_name", Text, nullable=False, default=""),
    Column("program_interested_in", String(64), nullable=False, default=""),
    Column("comments", Text, nullable=False, default=""),
    Column("raw_text", Text, nullable=False, default=""),
    Column("parsed_profile", Text),
    Column("created_at", DateTime, nullable=False),
)

_LEAD_COLUMNS = LeadRecord.field_names()


class LeadRepository:
    """Insert-only store of processed admission forms.

    Every call to :meth:`insert` creates a new row, including for an image
    that was processed before.

    Args:
        dsn: SQLAlchemy database URL, e.g. ``mysql+pymysql://...``.
    """

    def __init__(self, dsn: str) -> None:
        self.engine: Engine = create_engine(dsn, future=True, pool_pre_ping=True)

    def dispose(self) -> None:
        self.engine.dispose()

    def create_schema(self) -> None:
        """Create the ``student_forms`` table if it does not exist."""
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot create schema: {exc}") from exc

    def insert(self, record: LeadRecord, raw_text: str) -> int:
        """Store a lead with its raw text and serialized profile.

        Args:
            record: Extracted lead record.
            raw_text: Normalized recognized text kept for auditing.

        Returns:
            The identifier assigned to the new row.

        Raises:
            PersistenceError: If the row cannot be written.
        """
        values = record.to_dict()
        values.update(
            raw_text=raw_text,
            parsed_profile=json.dumps(values),
            created_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(student_forms).values(**values))
                lead_id = int(result.inserted_primary_key[0])
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot store lead: {exc}") from exc

        logger.info("Stored lead %d for %s", lead_id, record.image_url)
        return lead_id

    def get(self, lead_id: int) -> PersistedLead | None:
        """Load a stored lead by identifier.

        Raises:
            PersistenceError: If the query fails.
        """
        try:
            with self.engine.connect() as conn:
                row = (
                    conn.execute(select(student_forms).where(student_forms.c.id == lead_id))
                    .mappings()
                    .first()
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot load lead {lead_id}: {exc}") from exc

        if not row:
            return None

        return PersistedLead(
            id=row["id"],
            record=LeadRecord(**{name: row[name] or "" for name in _LEAD_COLUMNS}),
            raw_text=row["raw_text"],
            created_at=row["created_at"],
        )
