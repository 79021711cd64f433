"""
Tests for the verification analyzer and its summary.

The analyzer never raises on bad barcode data: everything becomes a flag.
All tests pin "today" so expiry checks do not depend on the calendar.
"""

from datetime import date

import pytest

from licensecheck.analyzer import (
    LicenseBarcodeAnalyzer,
    check_date_logic,
    check_expired,
    describe_error,
    quick_analyze,
)
from licensecheck.errors import InvalidDateError, PrefixExtractionError
from licensecheck.models import Flag, VerificationResult
from licensecheck.summary import VERDICTS, generate_rich_summary, generate_summary
from payloads import (
    PAYLOAD_INLINE,
    PAYLOAD_INVALID_EXPIRY,
    PAYLOAD_NO_LABELS,
    PAYLOAD_US_LAYOUT,
)


TODAY = date(2022, 6, 1)


def codes(result: VerificationResult) -> list[str]:
    return [f.code for f in result.flags]


@pytest.fixture
def analyzer() -> LicenseBarcodeAnalyzer:
    return LicenseBarcodeAnalyzer(today=TODAY)


# =============================================================================
# TEST LicenseBarcodeAnalyzer.analyze
# =============================================================================

class TestAnalyze:

    def test_clean_barcode(self, analyzer):
        result = analyzer.analyze(PAYLOAD_INLINE)
        assert result.flags == []
        assert result.score == 100
        assert result.risk_level == "LOW"
        assert result.confidence == 1.0
        assert result.dob == date(1969, 3, 5)
        assert result.expiry == date(2023, 7, 12)
        assert result.record.document_serial.value == "FFGG5566"

    def test_matching_references(self, analyzer):
        result = analyzer.analyze(
            PAYLOAD_US_LAYOUT,
            reference_dob=date(1994, 11, 5),
            reference_expiry=date(2026, 1, 12),
        )
        assert result.flags == []
        assert result.score == 100

    def test_expiry_mismatch_uses_barcode_date(self, analyzer):
        result = analyzer.analyze(PAYLOAD_INLINE, reference_expiry=date(2011, 12, 31))
        assert codes(result) == ["BARCODE_EXPIRY_MISMATCH"]
        assert result.expiry == date(2023, 7, 12)
        assert result.score == 70
        assert result.risk_level == "MEDIUM"

        flag = result.flags[0]
        assert flag.severity == "high"
        assert flag.details == {
            "field": "exp",
            "sent_date": "20111231",
            "barcode_date": "20230712",
        }

    def test_dob_mismatch(self, analyzer):
        result = analyzer.analyze(PAYLOAD_INLINE, reference_dob=date(1970, 1, 1))
        assert codes(result) == ["BARCODE_DOB_MISMATCH"]
        assert result.dob == date(1969, 3, 5)

    def test_invalid_data(self, analyzer):
        result = analyzer.analyze("invalid barcode data", reference_dob=date(1970, 1, 1))
        assert codes(result) == ["BARCODE_INVALID_DATA"]
        assert result.flags[0].severity == "critical"
        assert result.record is None
        assert result.score == 0
        assert result.risk_level == "CRITICAL"
        assert result.confidence == 0.0
        # Nothing from the barcode: the dates on file stand
        assert result.dob == date(1970, 1, 1)

    def test_no_labels(self, analyzer):
        result = analyzer.analyze(
            PAYLOAD_NO_LABELS,
            reference_dob=date(1970, 1, 1),
            reference_expiry=date(2030, 1, 1),
        )
        # Most severe first, serial noise last
        assert codes(result) == [
            "BARCODE_DOB_UNREADABLE",
            "BARCODE_EXPIRY_UNREADABLE",
            "BARCODE_SERIAL_MISSING",
        ]
        assert result.score == 65
        assert result.risk_level == "MEDIUM"
        assert result.confidence == 0.4
        assert result.dob == date(1970, 1, 1)
        assert result.expiry == date(2030, 1, 1)

    def test_unreadable_expiry(self, analyzer):
        result = analyzer.analyze(PAYLOAD_INVALID_EXPIRY)
        assert codes(result) == ["BARCODE_EXPIRY_UNREADABLE"]
        assert result.flags[0].details["kind"] == "invalid_date"
        assert result.confidence == 0.7
        assert result.expiry is None

    def test_expired_license(self):
        analyzer = LicenseBarcodeAnalyzer(today=date(2024, 1, 1))
        result = analyzer.analyze(PAYLOAD_INLINE)
        assert codes(result) == ["BARCODE_LICENSE_EXPIRED"]
        assert result.score == 85

    def test_expiry_check_can_be_disabled(self):
        analyzer = LicenseBarcodeAnalyzer(check_expiry=False, today=date(2024, 1, 1))
        assert analyzer.analyze(PAYLOAD_INLINE).flags == []

    def test_dob_in_future(self, analyzer):
        result = analyzer.analyze("@\nDAQX1\nDBB20300101\nDBA20350101\n")
        assert codes(result) == ["BARCODE_DOB_IN_FUTURE"]
        assert result.score == 40
        assert result.risk_level == "HIGH"

    def test_expiry_before_dob(self):
        analyzer = LicenseBarcodeAnalyzer(check_expiry=False, today=TODAY)
        result = analyzer.analyze("@\nDAQX1\nDBB20000101\nDBA19990101\n")
        assert codes(result) == ["BARCODE_EXPIRY_BEFORE_DOB"]
        assert result.risk_level == "HIGH"


# =============================================================================
# TEST individual checks
# =============================================================================

class TestChecks:

    def test_dates_ok(self):
        assert check_date_logic(date(1969, 3, 5), date(2023, 7, 12), TODAY) == []

    def test_missing_dates_are_not_checked(self):
        assert check_date_logic(None, None, TODAY) == []
        assert check_expired(None, TODAY) == []

    def test_expires_today_is_not_expired(self):
        assert check_expired(TODAY, TODAY) == []

    def test_both_impossible(self):
        flags = check_date_logic(date(2030, 1, 1), date(2020, 1, 1), TODAY)
        assert [f.code for f in flags] == ["BARCODE_DOB_IN_FUTURE", "BARCODE_EXPIRY_BEFORE_DOB"]


class TestDescribeError:

    def test_none(self):
        assert describe_error(None) == ""

    def test_date_error(self):
        assert describe_error(InvalidDateError("exp", "abc")).startswith("[date] ")

    def test_text_error(self):
        assert describe_error(PrefixExtractionError("DAQ")).startswith("[text] ")


# =============================================================================
# TEST quick_analyze
# =============================================================================

class TestQuickAnalyze:

    def test_keys_and_values(self):
        result = quick_analyze(PAYLOAD_US_LAYOUT)
        assert set(result) == {"score", "risk_level", "flag_count", "serial", "dob", "expiry"}
        assert result["serial"] == "3ff15620ed44b4bd2ec27d5d26078a729e"
        assert result["dob"] == "1994-11-05"
        assert result["expiry"] == "2026-01-12"

    def test_invalid_data(self):
        result = quick_analyze("no line breaks")
        assert result["serial"] is None
        assert result["risk_level"] == "CRITICAL"
        assert result["flag_count"] == 1


# =============================================================================
# TEST summary
# =============================================================================

class TestSummary:

    def test_clean_summary(self, analyzer):
        summary = generate_rich_summary(analyzer.analyze(PAYLOAD_INLINE))
        assert summary.verdict == VERDICTS["LOW"]
        assert summary.bullets == []

    def test_mismatch_sentence(self, analyzer):
        result = analyzer.analyze(PAYLOAD_INLINE, reference_expiry=date(2011, 12, 31))
        summary = generate_rich_summary(result)
        assert summary.verdict == VERDICTS["MEDIUM"]
        assert summary.bullets == [
            "The expiration date on file (20111231) was replaced by the barcode value (20230712)."
        ]

    def test_unknown_code_falls_back_to_message(self):
        result = VerificationResult(
            record=None,
            flags=[Flag(severity="low", code="SOMETHING_ELSE", message="Custom finding")],
        )
        assert generate_rich_summary(result).bullets == ["Custom finding"]

    def test_template_without_details_falls_back(self):
        result = VerificationResult(
            record=None,
            flags=[Flag(severity="high", code="BARCODE_DOB_MISMATCH", message="DOB differs")],
        )
        assert generate_rich_summary(result).bullets == ["DOB differs"]

    def test_summary_string(self, analyzer):
        text = generate_summary(analyzer.analyze("no line breaks"))
        assert text.startswith(VERDICTS["CRITICAL"])
        assert "not driver's license barcode data" in text
