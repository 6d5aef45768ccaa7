"""
Email Data Model
Value types produced while parsing a pasted MIME message
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

MIME_MULTIPART_FORMAT = "mime-multipart"


@dataclass
class EmailPart:
    """
    One decoded body part of a multipart message

    Built and consumed inside a single parse call; never stored.
    """
    content_type: str  # "text/plain" or "text/html"
    content: str
    encoding: Optional[str] = None
    charset: Optional[str] = None


@dataclass
class ParsedEmail:
    """
    Result of parsing one message string

    clean_text is always set: the plain-text part when there is one, the
    simplified HTML part otherwise, and the raw input when the message is not
    multipart or no part could be extracted.
    """
    has_multipart: bool
    clean_text: str
    text_plain: Optional[str] = None
    text_html: Optional[str] = None
    original_format: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
