"""
Template-based summary for a verification result.

Turns flags into a short verdict and one sentence per finding, so the app
can show something an operator reads at a glance.
"""

from licensecheck.models import Flag, VerificationResult, VerificationSummary


# =============================================================================
# SENTENCE TEMPLATES
# =============================================================================

# Flag code -> function(Flag) -> sentence. Missing codes fall back to flag.message.
SENTENCE_TEMPLATES: dict[str, callable] = {
    "BARCODE_INVALID_DATA": lambda f: (
        "The scanned text is not driver's license barcode data."
    ),
    "BARCODE_SERIAL_MISSING": lambda f: (
        "The document serial number (DAQ) is missing from the barcode."
    ),
    "BARCODE_DOB_UNREADABLE": lambda f: (
        "The date of birth in the barcode could not be read and needs a manual check."
    ),
    "BARCODE_EXPIRY_UNREADABLE": lambda f: (
        "The expiration date in the barcode could not be read and needs a manual check."
    ),
    "BARCODE_DOB_MISMATCH": lambda f: (
        f"The date of birth on file ({f.details['sent_date']}) was replaced by "
        f"the barcode value ({f.details['barcode_date']})."
    ),
    "BARCODE_EXPIRY_MISMATCH": lambda f: (
        f"The expiration date on file ({f.details['sent_date']}) was replaced by "
        f"the barcode value ({f.details['barcode_date']})."
    ),
    "BARCODE_DOB_IN_FUTURE": lambda f: (
        "The date of birth is in the future."
    ),
    "BARCODE_EXPIRY_BEFORE_DOB": lambda f: (
        "The license expires before its holder was born."
    ),
    "BARCODE_LICENSE_EXPIRED": lambda f: (
        f"The license expired on {f.details['expiry']}."
    ),
}


# Verdict per risk level
VERDICTS: dict[str, str] = {
    "CRITICAL": "Do not accept this license barcode.",
    "HIGH": "The barcode disagrees with the file or contains impossible dates.",
    "MEDIUM": "The barcode needs a manual check.",
    "LOW": "The barcode reads cleanly and matches the file.",
}


def _flag_to_sentence(flag: Flag) -> str:
    template_fn = SENTENCE_TEMPLATES.get(flag.code)
    if template_fn:
        try:
            return template_fn(flag)
        except (KeyError, TypeError):
            # Missing details: fall back to the flag's own message
            pass
    return flag.message


def generate_rich_summary(result: VerificationResult) -> VerificationSummary:
    """
    Build the verdict and bullet list for a verification result.

    A LOW risk result with flags (e.g. only a missing serial) keeps the LOW
    verdict but still lists the findings.
    """
    verdict = VERDICTS.get(result.risk_level, VERDICTS["MEDIUM"])
    bullets = [_flag_to_sentence(f) for f in result.flags]
    return VerificationSummary(verdict=verdict, bullets=bullets)


def generate_summary(result: VerificationResult) -> str:
    """Verdict and findings as a single string."""
    rich = generate_rich_summary(result)
    return " ".join([rich.verdict] + rich.bullets)
