"""Text folding and deterministic key helpers."""

import hashlib

_TURKISH_FOLD = str.maketrans(
    {
        "ı": "i",
        "İ": "i",
        "ğ": "g",
        "Ğ": "g",
        "ü": "u",
        "Ü": "u",
        "ş": "s",
        "Ş": "s",
        "ö": "o",
        "Ö": "o",
        "ç": "c",
        "Ç": "c",
    }
)


def fold_turkish(text: str) -> str:
    """Lowercase text and replace Turkish letters with their ASCII base."""
    return (text or "").translate(_TURKISH_FOLD).lower()


def normalize_for_key(text: str | None) -> str:
    """Reduce text to lowercase ASCII-folded letters, digits and single spaces.

    This exact form feeds the synthesized entry number hash, so changing
    it changes every generated identifier.
    """
    if not text:
        return ""
    folded = text.strip().lower().translate(_TURKISH_FOLD)

    chars = []
    for ch in folded:
        if ch.isalnum():
            chars.append(ch)
        elif ch.isspace():
            chars.append(" ")
    return "".join(chars).strip()


def header_key(text: str | None) -> str:
    """Fold a column header to a compact key: "Hesap Adı" -> "hesapadi"."""
    folded = fold_turkish((text or "").strip().strip('"'))
    return "".join(ch for ch in folded if ch.isalnum())


def short_digest(payload: str, length: int = 12) -> str:
    """Return the first ``length`` hex characters of the payload's SHA-256."""
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:length]
