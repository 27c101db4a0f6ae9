"""Resume file parsing.

Public API:
- parse_file: Extract normalized text from PDF, DOCX or TXT bytes
- guess_mime_type: Map a file name to a MIME type
- ParseError: Raised for unsupported or unreadable files
"""

from resume_pipeline.parsing.parser import ParseError, guess_mime_type, parse_file

__all__ = [
    "ParseError",
    "guess_mime_type",
    "parse_file",
]
