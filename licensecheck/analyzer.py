"""
LicenseCheck Analyzer - Verifies a driver's license barcode against the file.

This module ties the pieces together:
1. Parse the decoded barcode text (modules/aamva.py)
2. Reconcile the barcode dates with the dates on file (modules/reconcile.py)
3. Run sanity checks on the resulting dates
4. Score the findings (scoring.py)

Usage:
    from licensecheck.analyzer import LicenseBarcodeAnalyzer

    analyzer = LicenseBarcodeAnalyzer()
    result = analyzer.analyze(payload, reference_dob=date(1969, 3, 5))

    print(f"Trust Score: {result.score}/100")
    print(f"Risk Level: {result.risk_level}")
"""

from __future__ import annotations

import logging
from datetime import date

from licensecheck.errors import (
    BarcodeError,
    InvalidDataError,
    is_date_error,
)
from licensecheck.models import Flag, VerificationResult
from licensecheck.modules.aamva import BarcodeRecord, FieldResult, parse_barcode
from licensecheck.modules.reconcile import DateField, select_date
from licensecheck.scoring import score_flags, sort_flags

logger = logging.getLogger(__name__)


# Human-readable names used in flag messages
FIELD_LABELS = {
    DateField.DOB: "Date of birth",
    DateField.EXPIRY: "Expiration date",
}

# Flag code fragment for each date field: BARCODE_DOB_..., BARCODE_EXPIRY_...
FIELD_CODES = {
    DateField.DOB: "DOB",
    DateField.EXPIRY: "EXPIRY",
}


# =============================================================================
# CHECKS
# =============================================================================

def check_serial(record: BarcodeRecord) -> list[Flag]:
    """
    Flag a missing document serial (DAQ).

    This is text-quality noise rather than a date problem, hence "low".
    """
    error = record.document_serial.error
    if error is None:
        return []

    return [Flag(
        severity="low",
        code="BARCODE_SERIAL_MISSING",
        message="Document serial number could not be read from the barcode",
        details={"error": str(error)},
    )]


def check_field_readable(field: DateField, result: FieldResult) -> list[Flag]:
    """Flag a date field the barcode does not give us, for manual review."""
    if result.error is None or not is_date_error(result.error):
        return []

    logger.warning(f"Unreadable barcode {field.value}: {result.error}")
    return [Flag(
        severity="medium",
        code=f"BARCODE_{FIELD_CODES[field]}_UNREADABLE",
        message=f"{FIELD_LABELS[field]} could not be read from the barcode",
        details={
            "field": field.value,
            "kind": result.error.kind.value,
            "error": str(result.error),
        },
    )]


def reconcile_field(
    field: DateField,
    record: BarcodeRecord,
    reference: date | None,
) -> tuple[date | None, list[Flag]]:
    """
    Pick the date to use for a field and flag any disagreement.

    Without a reference date there is nothing to compare: the barcode date
    is used as is (or None if unreadable).

    Returns:
        Tuple of (resolved date, flags)
    """
    barcode_result = record.dob if field is DateField.DOB else record.expiry

    if reference is None:
        return barcode_result.date, []

    selection = select_date(field, record, reference)
    if selection.error is None:
        return selection.date, []

    error = selection.error
    if selection.mismatch:
        return selection.date, [Flag(
            severity="high",
            code=f"BARCODE_{FIELD_CODES[field]}_MISMATCH",
            message=(
                f"{FIELD_LABELS[field]} on file ({reference.isoformat()}) does not match "
                f"the barcode ({selection.date.isoformat()}), using the barcode date"
            ),
            details={
                "field": field.value,
                "sent_date": error.sent_date,
                "barcode_date": error.barcode_date,
            },
        )]

    return selection.date, [Flag(
        severity="high",
        code="BARCODE_DATE_RESELECT_FAILED",
        message=f"{FIELD_LABELS[field]} from the barcode could not be re-read",
        details={"field": field.value, "error": str(error)},
    )]


def check_date_logic(dob: date | None, expiry: date | None, today: date) -> list[Flag]:
    """
    Check for impossible dates.

    - A birth date in the future
    - A license that expires before its holder was born
    """
    flags = []

    if dob is not None and dob > today:
        flags.append(Flag(
            severity="critical",
            code="BARCODE_DOB_IN_FUTURE",
            message=f"Date of birth is in the future: {dob.isoformat()}",
            details={"dob": dob.isoformat(), "current_date": today.isoformat()},
        ))

    if dob is not None and expiry is not None and expiry < dob:
        flags.append(Flag(
            severity="critical",
            code="BARCODE_EXPIRY_BEFORE_DOB",
            message=(
                f"Expiration date ({expiry.isoformat()}) is before "
                f"date of birth ({dob.isoformat()})"
            ),
            details={"dob": dob.isoformat(), "expiry": expiry.isoformat()},
        ))

    return flags


def check_expired(expiry: date | None, today: date) -> list[Flag]:
    """Flag a license whose expiration date has passed."""
    if expiry is None or expiry >= today:
        return []

    return [Flag(
        severity="medium",
        code="BARCODE_LICENSE_EXPIRED",
        message=f"License expired on {expiry.isoformat()}",
        details={"expiry": expiry.isoformat(), "current_date": today.isoformat()},
    )]


def _confidence(record: BarcodeRecord) -> float:
    readable = sum(1 for f in (record.dob, record.expiry) if f.ok)
    if readable == 2:
        return 1.0  # Both dates to work with
    elif readable == 1:
        return 0.7
    else:
        return 0.4  # Only the structure was usable


# =============================================================================
# ANALYZER
# =============================================================================

class LicenseBarcodeAnalyzer:
    """
    Verifies decoded driver's license barcodes.

    Attributes:
        check_expiry: Flag licenses whose expiration date has passed
        today: Date used as "now" for future/expiry checks.
            None means date.today() at analysis time.

    Example:
        >>> analyzer = LicenseBarcodeAnalyzer()
        >>> result = analyzer.analyze(payload, reference_expiry=date(2011, 12, 31))
        >>> [f.code for f in result.flags]
        ['BARCODE_EXPIRY_MISMATCH', 'BARCODE_LICENSE_EXPIRED']
    """

    def __init__(self, check_expiry: bool = True, today: date | None = None):
        self.check_expiry = check_expiry
        self.today = today

    def analyze(
        self,
        data: str,
        reference_dob: date | None = None,
        reference_expiry: date | None = None,
    ) -> VerificationResult:
        """
        Verify a barcode payload.

        Bad barcode data never raises here: it ends up as flags.

        Args:
            data: Decoded PDF417 text
            reference_dob: Date of birth on file, if any
            reference_expiry: Expiration date on file, if any

        Returns:
            VerificationResult with score, risk level, flags and the dates to use
        """
        today = self.today or date.today()
        logger.info(f"Verifying barcode payload ({len(data)} chars)")

        try:
            record = parse_barcode(data)
        except InvalidDataError as e:
            logger.warning(f"Rejected barcode payload: {e}")
            return VerificationResult(
                record=None,
                flags=[Flag(
                    severity="critical",
                    code="BARCODE_INVALID_DATA",
                    message="The payload is not driver's license barcode data",
                    details={"error": str(e)},
                )],
                score=0,
                risk_level="CRITICAL",
                confidence=0.0,
                dob=reference_dob,
                expiry=reference_expiry,
            )

        flags = []
        flags.extend(check_serial(record))
        flags.extend(check_field_readable(DateField.DOB, record.dob))
        flags.extend(check_field_readable(DateField.EXPIRY, record.expiry))

        dob, dob_flags = reconcile_field(DateField.DOB, record, reference_dob)
        expiry, expiry_flags = reconcile_field(DateField.EXPIRY, record, reference_expiry)
        flags.extend(dob_flags)
        flags.extend(expiry_flags)

        flags.extend(check_date_logic(dob, expiry, today))
        if self.check_expiry:
            flags.extend(check_expired(expiry, today))

        flags = sort_flags(flags)
        score, risk_level = score_flags(flags)

        result = VerificationResult(
            record=record,
            flags=flags,
            score=score,
            risk_level=risk_level,
            confidence=_confidence(record),
            dob=dob,
            expiry=expiry,
        )

        logger.info(f"Verification complete: score={result.score}, risk={result.risk_level}")
        return result


def quick_analyze(
    data: str,
    reference_dob: date | None = None,
    reference_expiry: date | None = None,
) -> dict:
    """
    Quick verification for simple use cases.

    Returns a plain dict instead of a VerificationResult.

    Example:
        >>> quick_analyze(payload)
        {'score': 100, 'risk_level': 'LOW', 'flag_count': 0, 'dob': '1969-03-05', ...}
    """
    result = LicenseBarcodeAnalyzer().analyze(data, reference_dob, reference_expiry)

    serial = result.record.document_serial.value if result.record else None

    return {
        "score": result.score,
        "risk_level": result.risk_level,
        "flag_count": len(result.flags),
        "serial": serial,
        "dob": result.dob.isoformat() if result.dob else None,
        "expiry": result.expiry.isoformat() if result.expiry else None,
    }


def describe_error(error: BarcodeError | None) -> str:
    """One-line description of a field error for display, "" if none."""
    if error is None:
        return ""
    category = "date" if is_date_error(error) else "text"
    return f"[{category}] {error}"
