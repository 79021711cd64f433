"""
Data structures shared by the analyzer, the scoring code and the app.

A verification run produces a VerificationResult holding Flag objects,
one per finding about the barcode.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from licensecheck.modules.aamva import BarcodeRecord


# Severity levels for flags, from least to most concerning
SeverityLevel = Literal["low", "medium", "high", "critical"]

RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]


@dataclass
class Flag:
    """
    A single finding about a license barcode.

    Attributes:
        severity: How serious is this finding?
            - "low": Text-quality noise (e.g., serial number not found)
            - "medium": Needs a human look (e.g., unreadable birth date)
            - "high": Suspicious (e.g., barcode DOB differs from the file)
            - "critical": Not a usable license (e.g., DOB in the future)
        code: Unique identifier, format BARCODE_SPECIFIC_ISSUE
            (e.g., "BARCODE_DOB_MISMATCH"). Handy for tests and filtering.
        message: Human-readable description for the operator.
        details: Optional dict with additional context.
            Example: {"field": "exp", "barcode_date": "20230712"}

    Example:
        >>> flag = Flag(
        ...     severity="high",
        ...     code="BARCODE_EXPIRY_MISMATCH",
        ...     message="Expiration date on file differs from the barcode",
        ...     details={"barcode_date": "20230712", "sent_date": "20111231"}
        ... )
    """
    severity: SeverityLevel
    code: str
    message: str
    details: dict | None = None


@dataclass
class VerificationResult:
    """
    Outcome of verifying one barcode payload.

    Attributes:
        record: The parsed barcode, or None if the payload was rejected
        flags: Findings, most severe first. Empty list = nothing found.
        score: Trust score from 0 to 100 (starts at 100, flags deduct points)
        risk_level: Category derived from the score and critical flags
        confidence: How much of the barcode we could actually read (0.0-1.0).
            1.0 = both dates readable, 0.0 = nothing readable.
        dob: Date of birth to use (barcode wins over the date on file)
        expiry: Expiration date to use
    """
    record: BarcodeRecord | None
    flags: list[Flag] = field(default_factory=list)
    score: int = 100
    risk_level: RiskLevel = "LOW"
    confidence: float = 1.0
    dob: date | None = None
    expiry: date | None = None


@dataclass
class VerificationSummary:
    """
    Short verdict plus one sentence per finding, for display.

    Attributes:
        verdict: Bold one-liner, e.g. "Barcode dates disagree with the file."
        bullets: Finding sentences, most severe first.
    """
    verdict: str
    bullets: list[str] = field(default_factory=list)
