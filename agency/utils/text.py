import math
import re
import unicodedata

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

EXCERPT_LENGTH = 160
WORDS_PER_MINUTE = 200

_TAG_RE = re.compile(r"<[^>]+>")
_NON_SLUG_RE = re.compile(r"[^a-z0-9\s_-]")
_SLUG_SEP_RE = re.compile(r"[\s_-]+")


def normalize_text(text: str) -> str:
    """Normalize text by standardizing line breaks and whitespace.

    Converts different line break formats to standard newlines,
    collapses multiple spaces/tabs into single spaces, and reduces
    excessive blank lines.

    Args:
        text: Raw text to normalize.

    Returns:
        str: Normalized and trimmed text.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def strip_html(text: str) -> str:
    return _TAG_RE.sub(" ", text)


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def clean_optional(value: str | None) -> str | None:
    """Trim an optional string, mapping blank values to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def slugify(text: str) -> str:
    """Build a URL slug from a title.

    Accents are folded to ASCII, punctuation dropped and runs of
    whitespace, underscores or hyphens collapsed into a single hyphen.

    Examples:
        >>> slugify("  Marketing Digital & SEO ")
        'marketing-digital-seo'
        >>> slugify("Criação de Sites")
        'criacao-de-sites'
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    folded = _NON_SLUG_RE.sub("", folded.lower())
    return _SLUG_SEP_RE.sub("-", folded).strip("-")


def generate_excerpt(content: str, max_length: int = EXCERPT_LENGTH) -> str:
    """First ``max_length`` characters of the plain text, cut at a word boundary."""
    plain = " ".join(strip_html(content).split())
    if len(plain) <= max_length:
        return plain

    cut = plain[:max_length]
    last_space = cut.rfind(" ")
    if last_space > 0:
        cut = cut[:last_space]
    return cut.rstrip() + "..."


def reading_time_minutes(content: str) -> int:
    """Estimated reading time in minutes (200 words per minute, at least 1)."""
    words = len(strip_html(content).split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
