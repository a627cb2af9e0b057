"""Small text helpers shared by the normalizers and analytics."""

import html
import re
import unicodedata

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_COMBINING_DOT = "\u0307"


def turkish_lower(text: str) -> str:
    """Lowercase ``text`` the way a Turkish reader expects.

    ``str.lower`` turns ``İ`` into ``i`` followed by a combining dot, which
    breaks equality with the plain ``i`` used in the mapping tables.
    """
    if not text:
        return ""
    lowered = text.replace("İ", "i").lower()
    return unicodedata.normalize("NFC", lowered.replace(_COMBINING_DOT, ""))


def strip_html(markup: str) -> str:
    """Remove tags, decode entities and collapse whitespace."""
    if not markup:
        return ""
    text = _TAG_RE.sub(" ", markup)
    text = html.unescape(text)
    return _WS_RE.sub(" ", text).strip()
