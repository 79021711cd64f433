"""
AAMVA Barcode Parsing

This module reads the decoded text of the PDF417 barcode printed on the back
of US and Canadian driver's licenses (AAMVA DL/ID card design standard).

The payload is a list of "elements", one per line. Each element starts with
a 3-letter Data Element ID (DAQ, DBB, ...) followed by its value. Some
encoders put the value on the same line, others on the next line:

    DAQFFGG5566         or      DAQ
    DBB19690305                 FFGG5566

We only care about three elements:
- DAQ: customer ID number (document serial)
- DBB: date of birth
- DBA: document expiration date

Dates come in two layouts depending on the issuing jurisdiction:
CCYYMMDD (Canada) or MMDDCCYY (USA). We normalize both to YYYYMMDD.

Reference: AAMVA DL/ID Card Design Standard, Annex D (PDF417 data elements)

Note: decoding the barcode image itself is done elsewhere. This module only
sees the decoded text.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
import logging
import re

from licensecheck.errors import (
    BarcodeError,
    InvalidDataError,
    InvalidDateError,
    ParseDateError,
    PrefixExtractionError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

class FieldLabel(str, Enum):
    """AAMVA Data Element IDs for the fields we extract."""
    SERIAL = "DAQ"
    DATE_OF_BIRTH = "DBB"
    EXPIRY = "DBA"


# Labels whose value is a date
DATE_LABELS = frozenset({FieldLabel.DATE_OF_BIRTH.value, FieldLabel.EXPIRY.value})

# Field names used in error messages
FIELD_NAME_DOB = "dob"
FIELD_NAME_EXPIRY = "exp"

# Canonical date layout: YYYYMMDD, always 8 digits
CANONICAL_DATE_LENGTH = 8

# First two digits at or above this value are read as a century (YYYYMMDD);
# below it they are read as a month (MMDDYYYY).
# Known approximation: kept as is for compatibility with existing records.
CENTURY_THRESHOLD = 19


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class FieldResult:
    """
    Outcome of parsing one field of the barcode.

    A FieldResult is either usable or carries an error, never both:
    - value/date are set and error is None, or
    - value/date are None and error says what went wrong.

    Attributes:
        value: Extracted string. For dates, the canonical YYYYMMDD form.
        date: Parsed calendar date (date fields only)
        error: Why the field could not be read, if it could not
    """
    value: str | None = None
    date: date | None = None
    error: BarcodeError | None = None

    @property
    def ok(self) -> bool:
        """True if the field was read successfully."""
        return self.error is None and self.value is not None


@dataclass(frozen=True)
class BarcodeRecord:
    """
    Parsed driver's license barcode.

    Built once by parse_barcode() and never modified afterwards.

    Attributes:
        raw: The trimmed barcode text (kept for auditing)
        document_serial: DAQ element
        dob: DBB element
        expiry: DBA element
    """
    raw: str = ""
    document_serial: FieldResult = FieldResult()
    dob: FieldResult = FieldResult()
    expiry: FieldResult = FieldResult()

    @property
    def errors(self) -> list[BarcodeError]:
        """All per-field errors, in field order."""
        fields = (self.document_serial, self.dob, self.expiry)
        return [f.error for f in fields if f.error is not None]


# =============================================================================
# FIELD EXTRACTION
# =============================================================================

def _label_pattern(label: str) -> re.Pattern:
    # The label must start a line so "asds DBBda" in another value is skipped.
    # The first element of a subfile is glued to its "DL"/"ID" type, right
    # after the digits of the header directory: "...0021DLDAQ3ff156...".
    # ASCII flag: \x1c-\x1f separators are not whitespace in AAMVA data.
    return re.compile(rf"(?:\n|(?<=\d)(?:DL|ID)){re.escape(label)}\s*(\S+)", re.ASCII)


_LABEL_PATTERNS = {label.value: _label_pattern(label.value) for label in FieldLabel}


def extract_field(data: str, label: FieldLabel | str) -> str:
    """
    Find the value of a labeled element in the barcode text.

    Args:
        data: Decoded barcode text
        label: 3-character element ID (e.g. FieldLabel.SERIAL or "DAQ")

    Returns:
        The first whitespace-free token after the label

    Raises:
        PrefixExtractionError: If the label does not start any line
            (or the first element of a subfile).
            The error is tagged as a date error for DBB and DBA.

    Examples:
        >>> extract_field("@\\nDAQFFGG5566\\nDBB19690305", FieldLabel.SERIAL)
        'FFGG5566'
        >>> extract_field("@\\nDAQ\\nFFGG5566A", "DAQ")
        'FFGG5566A'
    """
    label_value = label.value if isinstance(label, FieldLabel) else str(label)
    pattern = _LABEL_PATTERNS.get(label_value) or _label_pattern(label_value)

    match = pattern.search(data)
    if match is None:
        raise PrefixExtractionError(
            prefix=label_value,
            is_date_error=label_value in DATE_LABELS,
        )
    return match.group(1).strip()


# =============================================================================
# DATE NORMALIZATION
# =============================================================================

def format_date(d: date) -> str:
    """
    Render a date in canonical YYYYMMDD form.

    strftime("%Y") does not zero-pad years below 1000 on every platform,
    so we format the parts ourselves.

    Examples:
        >>> format_date(date(1969, 3, 5))
        '19690305'
        >>> format_date(date.min)
        '00010101'
    """
    return f"{d.year:04d}{d.month:02d}{d.day:02d}"


def parse_date(token: str, field_name: str) -> date:
    """
    Parse an AAMVA date token.

    The layout is guessed from the first two digits:
    - 19 or more: YYYYMMDD (e.g. "19690305", "20230712")
    - below 19:   MMDDYYYY (e.g. "11051994", "01122026")

    Args:
        token: Raw date token from the barcode
        field_name: Field name for error messages ("dob", "exp")

    Returns:
        The parsed date

    Raises:
        InvalidDateError: If the token is not all digits
        ParseDateError: If the digits do not form a valid date
    """
    token = token.strip()
    if not token or not (token.isascii() and token.isdigit()):
        raise InvalidDateError(field_name=field_name, value=token)

    if int(token[:2]) >= CENTURY_THRESHOLD:
        return _digits_to_date(token, field_name, (0, 4), (4, 6), (6, 8))
    return _digits_to_date(token, field_name, (4, 8), (0, 2), (2, 4))


def parse_canonical_date(value: str, field_name: str) -> date:
    """
    Parse a canonical YYYYMMDD string, without any layout guessing.

    Used to read back dates that were already normalized (e.g. "18500101",
    which parse_date would take for MMDDYYYY).

    Raises:
        ParseDateError: If value is not a valid YYYYMMDD date
    """
    return _digits_to_date(value, field_name, (0, 4), (4, 6), (6, 8))


def _digits_to_date(token: str, field_name: str, year_pos, month_pos, day_pos) -> date:
    try:
        if len(token) != CANONICAL_DATE_LENGTH or not token.isdigit():
            raise ValueError(f"expected {CANONICAL_DATE_LENGTH} digits, got {token!r}")
        return date(
            int(token[slice(*year_pos)]),
            int(token[slice(*month_pos)]),
            int(token[slice(*day_pos)]),
        )
    except ValueError as e:
        raise ParseDateError(date=token, field_name=field_name, cause=e) from e


def process_date(data: str, label: FieldLabel | str, field_name: str) -> FieldResult:
    """
    Extract and normalize one date field.

    Never raises: any failure is captured in the returned FieldResult.
    If the label is missing, the date is not parsed at all.

    Returns:
        FieldResult with the canonical YYYYMMDD string and the date,
        or with the error
    """
    try:
        token = extract_field(data, label)
    except PrefixExtractionError as e:
        return FieldResult(error=e)

    try:
        parsed = parse_date(token, field_name)
    except (InvalidDateError, ParseDateError) as e:
        logger.debug(f"Could not parse {field_name} {token!r}: {e}")
        return FieldResult(error=e)

    # Always re-render so MMDDYYYY sources end up as YYYYMMDD
    return FieldResult(value=format_date(parsed), date=parsed)


# =============================================================================
# RECORD BUILDER
# =============================================================================

def _process_serial(data: str) -> FieldResult:
    try:
        return FieldResult(value=extract_field(data, FieldLabel.SERIAL))
    except PrefixExtractionError as e:
        return FieldResult(error=e)


def parse_barcode(data: str) -> BarcodeRecord:
    """
    Parse decoded barcode text into a BarcodeRecord.

    This is the main entry point. Each field is parsed independently, so a
    bad expiry date does not prevent reading the serial number: check each
    FieldResult's `error`.

    Args:
        data: Decoded PDF417 text

    Returns:
        BarcodeRecord (always, once the text has at least one line break)

    Raises:
        InvalidDataError: If the text contains no line break at all

    Example:
        >>> record = parse_barcode("@\\nDAQFFGG5566\\nDBA20230712\\nDBB19690305\\n")
        >>> record.document_serial.value
        'FFGG5566'
        >>> record.dob.date
        datetime.date(1969, 3, 5)
    """
    if "\n" not in data:
        raise InvalidDataError()

    data = data.strip()

    record = BarcodeRecord(
        raw=data,
        document_serial=_process_serial(data),
        dob=process_date(data, FieldLabel.DATE_OF_BIRTH, FIELD_NAME_DOB),
        expiry=process_date(data, FieldLabel.EXPIRY, FIELD_NAME_EXPIRY),
    )

    for error in record.errors:
        logger.debug(f"Barcode field error: {error}")

    return record
