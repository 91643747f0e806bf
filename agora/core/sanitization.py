"""Input sanitization utilities."""
import re
from typing import Optional

from agora.core.constants import (
    FREE_TEXT_MAX_LENGTH,
    OPTION_TEXT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
)

MAX_SESSION_ID_LENGTH = 128


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Strips HTML tags and normalizes whitespace, but does NOT escape HTML
    entities because the frontend escapes output when rendering.

    Args:
        text: The input text to sanitize
        max_length: Optional maximum length to enforce
        strip_html: Whether to strip HTML tags (default True)

    Returns:
        Sanitized text with HTML tags removed and whitespace normalized

    Raises:
        ValueError: If text exceeds max_length or contains dangerous patterns
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    if max_length and len(sanitized) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        sanitized = re.sub(r'<[^>]*>', '', sanitized)

    # Malformed tags or encoded attacks survive the strip above
    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    sanitized = re.sub(r'\s+', ' ', sanitized)

    return sanitized


def sanitize_poll_title(title: str) -> str:
    """
    Sanitize poll title input.

    Raises:
        ValueError: If the title is shorter than TITLE_MIN_LENGTH or too long
    """
    sanitized = sanitize_text(title, max_length=TITLE_MAX_LENGTH)

    if len(sanitized) < TITLE_MIN_LENGTH:
        raise ValueError(f"Poll title must be at least {TITLE_MIN_LENGTH} characters")

    return sanitized


def sanitize_option_text(text: str) -> str:
    """Sanitize the display text of a poll option."""
    sanitized = sanitize_text(text, max_length=OPTION_TEXT_MAX_LENGTH)

    if not sanitized:
        raise ValueError("Option text cannot be empty")

    return sanitized


def sanitize_free_text(text: str) -> str:
    """
    Sanitize a free-text poll response.

    Only trimmed and length-checked; markup-like text is kept as written
    and escaped by whoever renders results. Blank responses are passed
    through as "" so the vote service can reject them with its own error.
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    if len(sanitized) > FREE_TEXT_MAX_LENGTH:
        raise ValueError(f"Input exceeds maximum length of {FREE_TEXT_MAX_LENGTH} characters")

    return sanitized


def validate_session_id(session_id: str) -> str:
    """
    Validate an anonymous session id before it is stored.

    Raises:
        ValueError: If the session id is too long or has unexpected characters
    """
    if not isinstance(session_id, str):
        raise ValueError("Session id must be a string")

    session_id = session_id.strip()

    if len(session_id) > MAX_SESSION_ID_LENGTH:
        raise ValueError(f"Session id exceeds maximum length of {MAX_SESSION_ID_LENGTH} characters")

    if session_id and not re.match(r'^[A-Za-z0-9_.-]+$', session_id):
        raise ValueError("Session id format is invalid")

    return session_id
