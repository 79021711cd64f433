"""
Date reconciliation: barcode date vs. date on file.

When we already hold a date for a person (typed in by an agent, read by OCR
from the front of the card, stored from a previous visit...), the barcode is
the authoritative source. select_date() compares both and returns the one to
use, plus an advisory error when they disagree.

Policy: the barcode always wins. The mismatch error is for auditing, it is
not a veto. Callers that ignore it still get the corrected date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
import logging

from licensecheck.errors import BarcodeDateMismatchError, BarcodeError, ParseDateError
from licensecheck.modules.aamva import (
    BarcodeRecord,
    FieldResult,
    format_date,
    parse_canonical_date,
)

logger = logging.getLogger(__name__)


class DateField(str, Enum):
    """Which date of the record to reconcile. The value is the field name."""
    DOB = "dob"
    EXPIRY = "exp"


# Used when the caller has no date at all
ZERO_DATE = date.min


@dataclass(frozen=True)
class DateSelection:
    """
    Result of a reconciliation.

    Attributes:
        date: The date to use. Either the caller's own date (possibly None)
            or the barcode date when the two disagree.
        error: None when the caller's date stands. A BarcodeDateMismatchError
            when the barcode date replaced it, or a ParseDateError if the
            barcode date could not be re-read.
    """
    date: date | None
    error: BarcodeError | None = None

    @property
    def mismatch(self) -> bool:
        return isinstance(self.error, BarcodeDateMismatchError)


def _select_field(field: DateField | str, record: BarcodeRecord) -> tuple[DateField, FieldResult]:
    try:
        field = DateField(field)
    except ValueError:
        # Caller bug, not bad data: this must never be handled as a barcode error
        logger.critical(f"invalid date field: {field!r}")
        raise ValueError(f"invalid date field: {field!r}") from None

    if field is DateField.DOB:
        return field, record.dob
    return field, record.expiry


def select_date(
    field: DateField | str,
    record: BarcodeRecord,
    reference: date | None,
) -> DateSelection:
    """
    Compare a barcode date with the caller's date and pick one.

    Args:
        field: DateField.DOB or DateField.EXPIRY (or "dob" / "exp")
        record: Parsed barcode
        reference: The date on file, or None if there is none

    Returns:
        DateSelection:
        - barcode field unreadable: (reference, None), whatever reference is
        - same YYYYMMDD: (reference, None)
        - different: (barcode date, BarcodeDateMismatchError)

    Raises:
        ValueError: If field is not a known date field. This is a
            programming error and is not part of the barcode taxonomy.

    Example:
        >>> selection = select_date(DateField.EXPIRY, record, date(2011, 12, 31))
        >>> selection.date
        datetime.date(2023, 7, 12)
        >>> str(selection.error)
        'fieldname: "exp" : barcode date "20230712" does not match passed date "20111231" - using barcode date'
    """
    field, result = _select_field(field, record)

    barcode_value = result.value if result.error is None else None
    if not barcode_value:
        # Nothing usable in the barcode: the caller's date stands
        return DateSelection(date=reference)

    sent_value = format_date(reference if reference is not None else ZERO_DATE)
    if sent_value == barcode_value:
        return DateSelection(date=reference)

    try:
        barcode_date = parse_canonical_date(barcode_value, field.value)
    except ParseDateError as e:
        logger.error(f"Stored barcode {field.value} {barcode_value!r} could not be re-read: {e}")
        return DateSelection(date=reference, error=e)

    mismatch = BarcodeDateMismatchError(
        field_name=field.value,
        sent_date=sent_value,
        barcode_date=barcode_value,
    )
    logger.warning(str(mismatch))
    return DateSelection(date=barcode_date, error=mismatch)
