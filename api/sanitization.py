"""
Input sanitization utilities for EcoNova API endpoints.
Provides protection against markup injection and malformed data.
"""

import re
import logging
from typing import Optional

import bleach

MAX_DISPLAY_NAME_LENGTH = 80
MAX_DESCRIPTION_LENGTH = 2000

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

def sanitize_string(input_str: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize free text without changing its wording:
    1. Stripping leading/trailing whitespace
    2. Removing control characters (except tab, newline, carriage return)
    3. Truncating to max_length if specified

    Submission descriptions go through this only, since the scorer measures
    their length and searches them for keywords.
    """
    if input_str is None:
        return ""
    if not isinstance(input_str, str):
        input_str = str(input_str)

    sanitized = CONTROL_CHARS.sub('', input_str.strip())

    if max_length and len(sanitized) > max_length:
        logging.warning(f"Input truncated from {len(sanitized)} to {max_length} characters")
        sanitized = sanitized[:max_length]

    return sanitized

def sanitize_display_text(input_str: Optional[str], max_length: Optional[int] = None) -> str:
    """Like sanitize_string, but also strips every HTML tag. For names and teacher-authored text."""
    cleaned = bleach.clean(sanitize_string(input_str), tags=set(), attributes={}, strip=True)
    return sanitize_string(cleaned, max_length)
