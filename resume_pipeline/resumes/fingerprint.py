"""Content fingerprinting for resume duplicate detection.

This module provides functions for:
- Text normalization (line endings, runs of whitespace, blank lines)
- Content hash computation over the normalized text
"""

import hashlib
import re

# Runs of horizontal whitespace collapse to a single space
_INLINE_WHITESPACE = re.compile(r"[ \t\f\v]+")

# Three or more newlines collapse to one blank line
_BLANK_LINES = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """Normalize extracted resume text.

    This function:
    - Converts CRLF and CR line endings to LF
    - Collapses runs of spaces and tabs to a single space
    - Strips whitespace around each line
    - Collapses three or more newlines to a single blank line
    - Strips leading and trailing whitespace

    Args:
        text: Raw text extracted from an uploaded file.

    Returns:
        The normalized text.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _INLINE_WHITESPACE.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip()


def compute_content_hash(text: str) -> str:
    """Compute the content fingerprint of resume text.

    Two texts that normalize to the same string share a fingerprint, so a
    re-upload of the same document in a different container format is
    recognised as the same submission.

    Args:
        text: Extracted resume text.

    Returns:
        A SHA-256 hex digest of the normalized text.
    """
    return hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()
