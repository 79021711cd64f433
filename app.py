"""
LicenseCheck - Driver's License Barcode Verification

A Streamlit web application for checking the decoded PDF417 barcode of a
driver's license against the dates held on file.

Run with: streamlit run app.py
"""

import html
from datetime import date

import streamlit as st

from licensecheck.analyzer import LicenseBarcodeAnalyzer, describe_error
from licensecheck.modules.aamva import FieldResult
from licensecheck.summary import generate_rich_summary


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="LicenseCheck - Barcode Verification",
    layout="wide",
    initial_sidebar_state="expanded",
)

SEVERITY_COLORS = {
    "critical": "#721c24",
    "high": "#dc3545",
    "medium": "#fd7e14",
    "low": "#555",
}

RISK_COLORS = {
    "LOW": "#28a745",
    "MEDIUM": "#fd7e14",
    "HIGH": "#dc3545",
    "CRITICAL": "#721c24",
}


# =============================================================================
# SIDEBAR
# =============================================================================

with st.sidebar:
    st.markdown("### Dates on file")
    use_dob = st.checkbox("Compare date of birth", value=False)
    reference_dob = st.date_input(
        "Date of birth",
        value=date(1990, 1, 1),
        min_value=date(1900, 1, 1),
        disabled=not use_dob,
    )
    use_expiry = st.checkbox("Compare expiration date", value=False)
    reference_expiry = st.date_input(
        "Expiration date",
        value=date.today(),
        min_value=date(1900, 1, 1),
        max_value=date(2100, 12, 31),
        disabled=not use_expiry,
    )
    st.markdown("---")
    check_expiry = st.checkbox("Flag expired licenses", value=True)


# =============================================================================
# HELPERS
# =============================================================================

def render_field(label: str, result: FieldResult) -> None:
    """Show one parsed barcode field, or why it could not be read."""
    # Barcode tokens go through st.text: they may hold markdown characters
    if result.ok:
        st.markdown(f"**{label}:**")
        st.text(result.date.isoformat() if result.date else result.value)
    else:
        st.markdown(f"**{label}:** :red[unreadable]")
        st.text(describe_error(result.error))


# =============================================================================
# MAIN CONTENT
# =============================================================================

st.markdown("## LicenseCheck")
st.caption("Paste the decoded PDF417 text from the back of a driver's license.")

payload = st.text_area("Barcode payload", height=240)

if st.button("Verify", type="primary") and payload:
    analyzer = LicenseBarcodeAnalyzer(check_expiry=check_expiry)
    result = analyzer.analyze(
        payload,
        reference_dob=reference_dob if use_dob else None,
        reference_expiry=reference_expiry if use_expiry else None,
    )
    summary = generate_rich_summary(result)

    st.markdown("---")
    score_col, fields_col = st.columns([1, 2])

    with score_col:
        color = RISK_COLORS.get(result.risk_level, "#555")
        st.markdown(
            f'<div style="font-size:3rem; font-weight:bold; color:{color};">{result.score}</div>'
            f'<div style="color:{color};">{result.risk_level} risk</div>',
            unsafe_allow_html=True,
        )
        st.markdown(f"**{summary.verdict}**")

    with fields_col:
        if result.record is None:
            st.error("The payload contains no line breaks: it is not barcode data.")
        else:
            render_field("Document serial", result.record.document_serial)
            render_field("Date of birth", result.record.dob)
            render_field("Expiration date", result.record.expiry)
            st.markdown(
                f"**Dates to use:** DOB `{result.dob}` / expiry `{result.expiry}`"
            )

    if result.flags:
        st.markdown("---")
        st.markdown("## Findings")

        issues_html = ""
        for flag, sentence in zip(result.flags, summary.bullets):
            color = SEVERITY_COLORS.get(flag.severity, "#555")
            issues_html += (
                f'<div style="margin-bottom:6px;">'
                f'<span style="background:{color}; color:white; font-size:0.7rem; '
                f'font-weight:bold; padding:2px 8px; border-radius:10px;">'
                f'{flag.severity.upper()}</span> '
                f'<span>{html.escape(sentence)}</span> '
                f'<span style="color:#888; font-size:0.75rem;">{html.escape(flag.code)}</span>'
                f'</div>'
            )
        st.markdown(issues_html, unsafe_allow_html=True)

    with st.expander("Raw barcode text"):
        st.code(result.record.raw if result.record else payload)
