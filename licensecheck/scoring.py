"""
Scoring - Turns the flags of a verification run into a score and risk level.

Each flag deducts points from 100 according to its severity.

Risk levels:
- LOW (80-100): Barcode reads cleanly and agrees with the file
- MEDIUM (50-79): Something needs a human look
- HIGH (20-49): Dates disagree or cannot be trusted
- CRITICAL (0-19): Not a usable license barcode
"""

from licensecheck.models import Flag, RiskLevel


# =============================================================================
# SEVERITY POINTS
# =============================================================================

# Point deductions for each severity
SEVERITY_POINTS = {
    "low": 5,
    "medium": 15,
    "high": 30,
    "critical": 50,
}

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


# =============================================================================
# RISK LEVEL THRESHOLDS
# =============================================================================

def get_risk_level(score: int) -> RiskLevel:
    """
    Convert a numeric score to a risk level category.

    Thresholds:
        80-100: LOW
        50-79:  MEDIUM
        20-49:  HIGH
        0-19:   CRITICAL
    """
    if score >= 80:
        return "LOW"
    elif score >= 50:
        return "MEDIUM"
    elif score >= 20:
        return "HIGH"
    else:
        return "CRITICAL"


# =============================================================================
# FLAG HELPERS
# =============================================================================

def sort_flags(flags: list[Flag]) -> list[Flag]:
    """Return flags sorted by severity (critical first). Stable for equal severities."""
    return sorted(flags, key=lambda f: SEVERITY_ORDER.get(f.severity, 4))


def count_flags_by_severity(flags: list[Flag]) -> dict[str, int]:
    """
    Count flags by severity level.

    Returns:
        Dict mapping each severity to its count (zero included)
    """
    counts = {"critical": 0, "high": 0, "medium": 0, "low": 0}

    for flag in flags:
        if flag.severity in counts:
            counts[flag.severity] += 1

    return counts


# =============================================================================
# SCORE CALCULATION
# =============================================================================

def calculate_score(flags: list[Flag]) -> int:
    """
    Start at 100 and deduct SEVERITY_POINTS for each flag. Never below 0.

    Example:
        >>> calculate_score([Flag("high", "BARCODE_DOB_MISMATCH", "...")])
        70
    """
    score = 100
    for flag in flags:
        score -= SEVERITY_POINTS.get(flag.severity, 0)
    return max(0, score)


def score_flags(flags: list[Flag]) -> tuple[int, RiskLevel]:
    """
    Compute the final score and risk level for a set of flags.

    Critical flags override the plain point count:
    - one critical flag: at least HIGH risk, score capped at 40
    - two or more: CRITICAL risk, score capped at 19

    Returns:
        Tuple of (score, risk_level)
    """
    score = calculate_score(flags)
    risk_level = get_risk_level(score)

    flag_counts = count_flags_by_severity(flags)

    if flag_counts["critical"] >= 1:
        if risk_level in ("LOW", "MEDIUM"):
            risk_level = "HIGH"
        score = min(score, 40)

    if flag_counts["critical"] >= 2:
        risk_level = "CRITICAL"
        score = min(score, 19)

    return score, risk_level
