import html
import re
from uuid import uuid4

SUSPICIOUS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
)


def sanitize(text: str) -> str:
    """Escape markup-significant characters so the text renders literally.

    The result is safe as HTML text content or a quoted attribute value;
    ``html.unescape(sanitize(x)) == x`` for every string.
    """
    return html.escape(text, quote=True)


def validate_input(text: object, max_length: int) -> bool:
    """Return True when ``text`` may be sent: non-empty, within ``max_length``,
    not whitespace-only, and free of the suspicious patterns above."""
    if not text or not isinstance(text, str):
        return False
    if len(text) > max_length:
        return False
    if not text.strip():
        return False
    return not any(pattern.search(text) for pattern in SUSPICIOUS_PATTERNS)


def generate_secure_id() -> str:
    # uuid4 draws its 122 random bits from os.urandom
    return str(uuid4())
