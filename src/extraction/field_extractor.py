"""Label-anchored field extraction for admission form text.

Each target field is described by a :class:`FieldRule`: the label
spellings accepted for it (tolerating common OCR noise), the pattern its
value must match, and the normalizer applied to the captured value. The
rules live in the ``FIELD_RULES`` table so fields can be added without
touching the matching logic.

Extraction never raises: a field whose label is missing or whose value
does not match its pattern is left empty.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from src.models import LeadRecord
from src.utils.logger import get_logger

logger = get_logger(__name__)

_SEPARATOR_RE = re.compile(r"[|¦│┃]+")
_NON_DIGIT_RE = re.compile(r"\D")

FREE_TEXT = r"[^\n]+"
PHONE = r"[0-9 \t\-()+]{7,20}"
EMAIL = r"[\w.%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"

# Between a label and its value: any mix of spaces, line breaks, ":", "." and "-".
LABEL_SEPARATOR = r"[\s:.\-]*"

_EMAIL_RE = re.compile(EMAIL, re.IGNORECASE)


def normalize_text(raw: str) -> str:
    """Clean recognized text before field matching.

    Collapses table separator glyphs to a space, normalizes line endings,
    and drops zero-width and other non-printable characters.

    Args:
        raw: Text as returned by the recognition engine.

    Returns:
        Normalized text with ``\\n`` line endings.
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = _SEPARATOR_RE.sub(" ", text).replace("\t", " ")
    return "".join(ch for ch in text if ch == "\n" or ch.isprintable())


def title_case(value: str) -> str:
    """Capitalize the first letter of each whitespace-separated word.

    The rest of each word is lower-cased; apostrophes and hyphens do not
    start a new word, so ``O'Brien`` becomes ``O'brien``.
    """
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split())


def normalize_phone(value: str) -> str:
    """Keep digits only and drop a leading ``91`` country code.

    Args:
        value: Captured phone text such as ``+91 98765 43210``.

    Returns:
        Digits-only number, reduced to its last 10 digits when it starts
        with ``91`` and is longer than 10 digits.
    """
    digits = _NON_DIGIT_RE.sub("", value)
    if digits.startswith("91") and len(digits) > 10:
        digits = digits[-10:]
    return digits


def normalize_email(value: str) -> str:
    """Lower-case an address, or return ``""`` if it is not one."""
    value = value.strip().lower()
    return value if _EMAIL_RE.fullmatch(value) else ""


def clean_text(value: str) -> str:
    return value.strip()


@dataclass(frozen=True)
class FieldRule:
    """Extraction rule for one lead field.

    Attributes:
        name: LeadRecord attribute populated by the rule.
        labels: Accepted label spellings as regex fragments.
        value_pattern: Regex the value following the label must match.
            Must not contain capturing groups.
        normalizer: Function applied to the captured value.
    """

    name: str
    labels: tuple[str, ...]
    value_pattern: str
    normalizer: Callable[[str], str]

    def compile(self) -> re.Pattern[str]:
        labels = "|".join(self.labels)
        return re.compile(
            rf"(?:{labels}){LABEL_SEPARATOR}({self.value_pattern})", re.IGNORECASE
        )


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule("first_name", (r"First\s*Name",), FREE_TEXT, title_case),
    FieldRule("last_name", (r"Last\s*Name", r"Sur\s*name"), FREE_TEXT, title_case),
    FieldRule(
        "mobile_no",
        (r"Mobile\s*(?:No|Number)", r"Mob\.?\s*No", r"Contact\s*No"),
        PHONE,
        normalize_phone,
    ),
    FieldRule("email", (r"E-?mail\s*(?:ID|Address)?",), EMAIL, normalize_email),
    FieldRule(
        "school_college_name",
        (r"School.*?Name", r"College\s*Name"),
        FREE_TEXT,
        clean_text,
    ),
    FieldRule("current_grade", (r"Current\s*(?:Grade|Class)",), FREE_TEXT, clean_text),
    FieldRule(
        "completion_year",
        (r"Completion\s*Year", r"Year\s*of\s*(?:Completion|Passing)"),
        FREE_TEXT,
        clean_text,
    ),
    FieldRule("father_name", (r"Father['’]?s?\s*Name",), FREE_TEXT, title_case),
    FieldRule("mother_name", (r"Mother['’]?s?\s*Name",), FREE_TEXT, title_case),
    FieldRule("comments", (r"Comments?", r"Remarks?"), FREE_TEXT, clean_text),
)

# Checked in order; the first matching category wins.
PROGRAM_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("BBA", r"entrepreneurship|\bBBA\b|business\s+administration"),
    ("B.Des", r"\bdesign(?:ing|er)?\b|\bB\.?\s?Des\b"),
    (
        "B.Sc AI & ML",
        r"digital\s*technology|\bAI\b|\bML\b|artificial\s+intelligence"
        r"|machine\s+learning",
    ),
)

_PROGRAM_PATTERNS = [
    (category, re.compile(pattern, re.IGNORECASE))
    for category, pattern in PROGRAM_CATEGORIES
]


def infer_program(text: str) -> str:
    """Classify the program of interest by priority-ordered keyword groups.

    Args:
        text: Normalized form text.

    Returns:
        The first category whose keywords occur in the text, or ``""``.
    """
    for category, pattern in _PROGRAM_PATTERNS:
        if pattern.search(text):
            return category
    return ""


def canonical_program(value: str) -> str:
    """Map a free-form program name onto a known category, else ``""``."""
    return infer_program(value)


FIELD_NORMALIZERS: dict[str, Callable[[str], str]] = {
    rule.name: rule.normalizer for rule in FIELD_RULES
}
FIELD_NORMALIZERS["program_interested_in"] = canonical_program


@dataclass
class ExtractionResult:
    """Extracted lead record together with the text it came from."""

    record: LeadRecord
    raw_text: str
    matched_fields: list[str] = field(default_factory=list)


class FieldExtractor:
    """Applies the label grammar to recognized text.

    Args:
        rules: Field rules to apply. Defaults to ``FIELD_RULES``.
    """

    def __init__(self, rules: tuple[FieldRule, ...] = FIELD_RULES) -> None:
        self.rules = rules
        self._patterns = [(rule, rule.compile()) for rule in rules]
        all_labels = "|".join(label for rule in rules for label in rule.labels)
        self._label_start = re.compile(rf"(?:{all_labels})\b", re.IGNORECASE)

    def _capture(self, rule: FieldRule, pattern: re.Pattern[str], text: str) -> str:
        match = pattern.search(text)
        if not match:
            return ""
        value = match.group(1).strip()
        # A blank free-text field followed by the next labelled line is not a value.
        if rule.value_pattern == FREE_TEXT and self._label_start.match(value):
            return ""
        return rule.normalizer(value)

    def extract(self, raw_text: str, image_url: str = "") -> ExtractionResult:
        """Extract a lead record from raw recognized text.

        Args:
            raw_text: Text returned by the recognition engine.
            image_url: Source image reference carried into the record.

        Returns:
            Extraction result whose record has every field populated,
            possibly with empty strings.
        """
        text = normalize_text(raw_text)
        values: dict[str, str] = {}
        matched: list[str] = []

        for rule, pattern in self._patterns:
            value = self._capture(rule, pattern, text)
            values[rule.name] = value
            if value:
                matched.append(rule.name)

        values["program_interested_in"] = infer_program(text)
        record = LeadRecord.from_mapping(values)
        record.image_url = image_url

        logger.info(
            "Extracted %d/%d labelled fields (program=%r)",
            len(matched),
            len(self.rules),
            record.program_interested_in,
        )
        return ExtractionResult(record=record, raw_text=text, matched_fields=matched)

    def from_structured(
        self, data: Mapping[str, Any], image_url: str = ""
    ) -> LeadRecord | None:
        """Adapt a structured model reply into a lead record.

        Args:
            data: Decoded JSON object keyed by lead field names.
            image_url: Source image reference carried into the record.

        Returns:
            The normalized record, or ``None`` if the object shares no keys
            with the lead schema.
        """
        if not set(data).intersection(LeadRecord.field_names()):
            logger.warning("Structured reply has no lead fields, falling back to text")
            return None
        record = LeadRecord.from_mapping(data, FIELD_NORMALIZERS)
        record.image_url = image_url
        return record


def parse_student_form(raw_text: str) -> ExtractionResult:
    """Extract a lead record from raw text with the default rules."""
    return FieldExtractor().extract(raw_text)
