"""
Error taxonomy for barcode parsing and date reconciliation.

Every error raised or returned by the barcode code is a subclass of
BarcodeError and carries a `kind` tag. Callers classify errors with the two
predicates at the bottom of this file instead of long isinstance chains:

- is_package_error(err): is this one of ours at all?
- is_date_error(err): is this about a date (as opposed to, say, a missing
  serial number)?

A typical policy is to treat a missing serial number as text-quality noise
while sending date problems to manual review.
"""

from enum import Enum


class ErrorKind(Enum):
    """The closed set of barcode error kinds."""
    INVALID_DATA = "invalid_data"
    INVALID_DATE = "invalid_date"
    PARSE_DATE = "parse_date"
    PREFIX_EXTRACTION = "prefix_extraction"
    BARCODE_DATE_MISMATCH = "barcode_date_mismatch"


# Kinds that are always about dates. PREFIX_EXTRACTION depends on the label.
DATE_ERROR_KINDS = frozenset({
    ErrorKind.INVALID_DATE,
    ErrorKind.PARSE_DATE,
    ErrorKind.BARCODE_DATE_MISMATCH,
})


# Backslash escapes for quoted values in error messages (printf "%q" style)
_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}


def _quote(value: str) -> str:
    """Double-quote a value, escaping quotes, backslashes and control characters."""
    out = []
    for ch in str(value):
        code = ord(ch)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif code < 0x80:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    return '"' + "".join(out) + '"'


class BarcodeError(Exception):
    """Base class for all barcode errors."""
    kind: ErrorKind


class InvalidDataError(BarcodeError):
    """The payload is not structurally a barcode (no line breaks at all)."""
    kind = ErrorKind.INVALID_DATA

    def __str__(self):
        return "invalid barcode data"


class InvalidDateError(BarcodeError):
    """
    A date token is not a string of digits.

    Attributes:
        field_name: Name of the date field ("dob", "exp", ...)
        value: The offending raw token
    """
    kind = ErrorKind.INVALID_DATE

    def __init__(self, field_name: str = "", value: str = ""):
        super().__init__(field_name, value)
        self.field_name = field_name
        self.value = value

    def __str__(self):
        return f"fieldname: {_quote(self.field_name)} : invalid date: {_quote(self.value)}"


class ParseDateError(BarcodeError):
    """
    A date token is all digits but does not form a calendar date.

    The underlying ValueError is available both as `cause` and through the
    usual exception chain (`__cause__`).

    Attributes:
        date: The token that failed to parse
        field_name: Name of the date field
        cause: The calendar parse failure, if any
    """
    kind = ErrorKind.PARSE_DATE

    def __init__(self, date: str = "", field_name: str = "", cause: Exception | None = None):
        super().__init__(date, field_name)
        self.date = date
        self.field_name = field_name
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self):
        return f"fieldname: {_quote(self.field_name)} : could not parse date {_quote(self.date)}"


class PrefixExtractionError(BarcodeError):
    """
    A field label was not found at the start of any line.

    Attributes:
        prefix: The 3-character label that was searched for (e.g. "DAQ")
        is_date_error: True when the label belongs to a date field
    """
    kind = ErrorKind.PREFIX_EXTRACTION

    def __init__(self, prefix: str = "", is_date_error: bool = False):
        super().__init__(prefix, is_date_error)
        self.prefix = str(prefix)
        self.is_date_error = is_date_error

    def __str__(self):
        return f"prefix: {_quote(self.prefix)} could not be extracted from the barcode data"


class BarcodeDateMismatchError(BarcodeError):
    """
    The barcode date differs from the date supplied by the caller.

    This is advisory: the reconciler still hands back the barcode date.

    Attributes:
        field_name: "dob" or "exp"
        sent_date: Caller's date, canonical YYYYMMDD
        barcode_date: Barcode date, canonical YYYYMMDD
    """
    kind = ErrorKind.BARCODE_DATE_MISMATCH

    def __init__(self, field_name: str = "", sent_date: str = "", barcode_date: str = ""):
        super().__init__(field_name, sent_date, barcode_date)
        self.field_name = field_name
        self.sent_date = sent_date
        self.barcode_date = barcode_date

    def __str__(self):
        return (
            f"fieldname: {_quote(self.field_name)} : barcode date {_quote(self.barcode_date)} "
            f"does not match passed date {_quote(self.sent_date)} - using barcode date"
        )


# =============================================================================
# CLASSIFICATION
# =============================================================================

def _find_barcode_error(err: BaseException | None) -> BarcodeError | None:
    """Walk the explicit __cause__ chain and return the first BarcodeError in it."""
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, BarcodeError):
            return err
        seen.add(id(err))
        # Only explicit wrapping ("raise ... from err") counts, not the
        # implicit context of an error raised inside an except block.
        err = err.__cause__
    return None


def is_package_error(err: BaseException | None) -> bool:
    """True if err (or anything it wraps) belongs to the barcode taxonomy."""
    return _find_barcode_error(err) is not None


def is_date_error(err: BaseException | None) -> bool:
    """
    True if err is a date-related barcode error.

    Date-related means: an invalid or unparseable date token, a barcode/caller
    mismatch, or a missing label that belongs to a date field.

    Examples:
        >>> is_date_error(PrefixExtractionError("DBB", is_date_error=True))
        True
        >>> is_date_error(PrefixExtractionError("DAQ"))
        False
    """
    found = _find_barcode_error(err)
    if found is None:
        return False
    if found.kind in DATE_ERROR_KINDS:
        return True
    if found.kind is ErrorKind.PREFIX_EXTRACTION:
        return found.is_date_error
    return False
