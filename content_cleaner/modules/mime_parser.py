"""
MIME Parser Module
Recovers the text/plain and text/html parts of a pasted multipart email

Pasted mail rarely survives the trip intact: chat widgets and CRM fields often
collapse every CRLF into a single space, so a message arrives as one long line
with its headers, boundaries and bodies run together. Two strategies are tried:

1. Single-line heuristic: anchor on each part's ``charset=`` declaration and
   take everything up to the next boundary marker. Works on both collapsed and
   well-formed input.
2. Multi-line split: the classic approach of splitting on the boundary and
   separating headers from body at the first blank line. Only used when the
   heuristic found nothing.

The results of the two strategies are never merged.
"""

import base64
import binascii
import logging
import re
from typing import Dict, List, Optional, Tuple

from content_cleaner.modules.email_data import MIME_MULTIPART_FORMAT, EmailPart, ParsedEmail
from content_cleaner.modules.html_entities import decode_basic_entities
from content_cleaner.utils.sanitization import sanitize_for_logging


logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"

# Detection
BOUNDARY_MARKER_PATTERN = re.compile(r'--([A-Za-z0-9_=-]{10,})')
TEXT_CONTENT_TYPE_PATTERN = re.compile(r'Content-Type:\s*text/(?:plain|html)', re.I)
TRANSFER_ENCODING_HEADER_PATTERN = re.compile(r'Content-Transfer-Encoding:', re.I)

# Part headers
CONTENT_TYPE_PATTERN = re.compile(r'Content-Type:\s*(text/(?:plain|html))', re.I)
CHARSET_PATTERN = re.compile(r'charset="?([\w.:-]+)"?', re.I)
TRANSFER_ENCODING_PATTERN = re.compile(r'Content-Transfer-Encoding:\s*([\w-]+)', re.I)
HEADER_BODY_SEPARATOR = re.compile(r'\r?\n\r?\n')
# Parameters after charset, e.g. "; format=flowed; delsp=yes"
CONTENT_TYPE_PARAMS = r'(?:[ \t]*;[ \t]*[\w-]+=(?:"[^"]*"|[^\s;"]+))*'
# Header fields that can follow the charset declaration on a collapsed line
TRAILING_HEADER_PATTERN = re.compile(
    r'\s*(?:Content-[\w-]+|MIME-Version):[ \t]*[^\s;]+(?:;[ \t]*[^\s;]+)*',
    re.I,
)

# Quoted-printable
SOFT_LINE_BREAK_PATTERN = re.compile(r'=\r?\n')
HEX_ESCAPE_RUN_PATTERN = re.compile(r'(?:=[0-9A-Fa-f]{2})+')

# Simple HTML clean
HTML_BLOCK_PATTERNS = [
    re.compile(r'<head\b[^>]*>.*?</head>', re.I | re.S),
    re.compile(r'<style\b[^>]*>.*?</style>', re.I | re.S),
    re.compile(r'<script\b[^>]*>.*?</script>', re.I | re.S),
]
BR_PATTERN = re.compile(r'<br\s*/?>', re.I)
BLOCK_CLOSE_PATTERN = re.compile(r'</(?:p|div|li|tr)\s*>', re.I)
TAG_PATTERN = re.compile(r'<[^>]+>')
CONTROL_CHAR_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
LINE_ENDING_PATTERN = re.compile(r'\r\n?')
HORIZONTAL_SPACE_PATTERN = re.compile(r'[ \t]+')
SPACED_NEWLINE_PATTERN = re.compile(r' *\n *')
EXCESS_NEWLINES_PATTERN = re.compile(r'\n{3,}')


def is_mime_multipart_message(text: str) -> bool:
    """
    Detect a pasted multipart message.

    All three signals must be present: a boundary marker (``--`` followed by
    at least ten token characters), a text/plain or text/html Content-Type
    header, and a Content-Transfer-Encoding header. Requiring all three keeps
    ordinary prose containing "--" or a stray header line from matching.
    """
    if not text or not isinstance(text, str):
        return False

    return bool(
        BOUNDARY_MARKER_PATTERN.search(text)
        and TEXT_CONTENT_TYPE_PATTERN.search(text)
        and TRANSFER_ENCODING_HEADER_PATTERN.search(text)
    )


def _decode_bytes(data: bytes, charset: Optional[str]) -> str:
    """
    Decode bytes to string with charset fallback

    'replace' error handling keeps a badly encoded part readable instead of
    losing it entirely.

    Args:
        data: Bytes to decode
        charset: Charset name (can be None or invalid)

    Returns:
        Decoded string
    """
    encoding = charset or "utf-8"
    try:
        return data.decode(encoding, errors="replace")
    except LookupError:
        # Unknown charset, fallback to UTF-8
        logger.debug(f"Unknown charset {sanitize_for_logging(encoding, 40)}, using utf-8")
        return data.decode("utf-8", errors="replace")


def decode_quoted_printable(text: str, charset: Optional[str] = "utf-8") -> str:
    """
    Decode a quoted-printable body.

    Soft line breaks are removed, each run of ``=XX`` escapes is turned into
    bytes and decoded as one unit (so multi-byte UTF-8 sequences come out as
    single characters), and CRLF becomes LF. Malformed escapes such as
    ``=GG`` are left as they are.

    Args:
        text: Quoted-printable body
        charset: Charset declared by the part

    Returns:
        Decoded text
    """
    if not text:
        return text or ""

    text = SOFT_LINE_BREAK_PATTERN.sub('', text)
    text = HEX_ESCAPE_RUN_PATTERN.sub(
        lambda m: _decode_bytes(bytes.fromhex(m.group(0).replace('=', '')), charset),
        text,
    )
    return text.replace('\r\n', '\n')


def decode_transfer_encoding(body: str, encoding: Optional[str], charset: Optional[str]) -> str:
    """
    Undo a part's Content-Transfer-Encoding.

    quoted-printable and base64 are decoded; 7bit, 8bit, binary and missing
    encodings leave the body as it is. A base64 payload that does not decode
    is kept verbatim.
    """
    encoding = (encoding or "").lower()

    if encoding == "quoted-printable":
        return decode_quoted_printable(body, charset)

    if encoding == "base64":
        try:
            return _decode_bytes(base64.b64decode(body), charset)
        except (binascii.Error, ValueError) as e:
            logger.debug(f"Undecodable base64 part kept as-is: {e}")
            return body

    return body


def _header_value(pattern: re.Pattern, headers: str) -> Optional[str]:
    match = pattern.search(headers)
    return match.group(1) if match else None


def _charset_anchored_pattern(subtype: str, boundary: str) -> re.Pattern:
    """
    Pattern for one part in strategy 1.

    Both the gap before ``charset=`` and the captured body use a tempered
    token, so a match can never run across a boundary into the next part.
    Any Content-Type parameters after the charset belong to the header.
    """
    marker = '--' + re.escape(boundary)
    not_marker = f'(?:(?!{marker}).)'
    end = rf'\s*{marker}'
    if subtype == 'html':
        end += r'|\s*\Z'
    return re.compile(
        rf'Content-Type:\s*text/{subtype}\b{not_marker}*?'
        rf'charset="?([\w.:-]+)"?{CONTENT_TYPE_PARAMS}[ \t;]*'
        rf'(?P<body>{not_marker}+?)(?={end})',
        re.I | re.S,
    )


def _extract_charset_anchored_parts(text: str, boundary: str) -> List[EmailPart]:
    """Strategy 1: the single-line heuristic."""
    marker = '--' + boundary
    parts = []

    for content_type, subtype in ((TEXT_PLAIN, 'plain'), (TEXT_HTML, 'html')):
        match = _charset_anchored_pattern(subtype, boundary).search(text)
        if not match:
            continue

        body = match.group('body')
        peeled_end = 0
        while True:
            header = TRAILING_HEADER_PATTERN.match(body, peeled_end)
            if not header:
                break
            peeled_end = header.end()

        # The part's own header region: from its boundary marker to the body
        region_start = max(text.rfind(marker, 0, match.start()), 0)
        headers = text[region_start:match.start('body')] + body[:peeled_end]

        charset = match.group(1)
        encoding = _header_value(TRANSFER_ENCODING_PATTERN, headers)
        content = decode_transfer_encoding(body[peeled_end:].strip(), encoding, charset)
        parts.append(EmailPart(content_type, content.strip(), encoding, charset))

    return parts


def _split_header_body(segment: str) -> Optional[Tuple[str, str]]:
    pieces = HEADER_BODY_SEPARATOR.split(segment, maxsplit=1)
    if len(pieces) < 2:
        return None
    return pieces[0], pieces[1]


def _extract_boundary_split_parts(text: str, boundary: str) -> List[EmailPart]:
    """Strategy 2: split on the boundary and read each part's headers."""
    parts = []

    for segment in re.split('--' + re.escape(boundary), text):
        segment = segment.strip()
        if not segment or segment == '--':
            continue

        split = _split_header_body(segment)
        if split is None:
            continue
        headers, body = split

        content_type = _header_value(CONTENT_TYPE_PATTERN, headers)
        if not content_type:
            continue

        encoding = _header_value(TRANSFER_ENCODING_PATTERN, headers)
        charset = _header_value(CHARSET_PATTERN, headers)
        logger.debug(f"Processing part {content_type} (encoding={encoding}, charset={charset})")

        content = decode_transfer_encoding(body, encoding, charset)
        parts.append(EmailPart(content_type.lower(), content.strip(), encoding, charset))

    return parts


def _select_parts(parts: List[EmailPart]) -> Dict[str, str]:
    """Map content type to content; a later part of the same type wins."""
    selected = {}
    for part in parts:
        selected[part.content_type] = part.content
    return selected


def parse_mime_multipart_message(text: str) -> ParsedEmail:
    """
    Parse a pasted multipart message into its text parts.

    Args:
        text: Raw message as pasted, possibly with line breaks collapsed

    Returns:
        ParsedEmail. For input that is not multipart, has_multipart is False
        and clean_text is the input unchanged.

    Example:
        >>> parsed = parse_mime_multipart_message(raw)
        >>> parsed.text_plain.startswith('Hola')
        True
    """
    if not is_mime_multipart_message(text):
        return ParsedEmail(has_multipart=False, clean_text=text)

    boundary = BOUNDARY_MARKER_PATTERN.search(text).group(1)
    logger.debug(f"Found MIME boundary: {sanitize_for_logging(boundary, 80)}")

    selected = _select_parts(_extract_charset_anchored_parts(text, boundary))
    if selected:
        logger.debug("Parts extracted with charset-anchored heuristic")
    else:
        selected = _select_parts(_extract_boundary_split_parts(text, boundary))
        if selected:
            logger.debug("Parts extracted by boundary split")

    text_plain = selected.get(TEXT_PLAIN)
    text_html = selected.get(TEXT_HTML)
    logger.debug(
        f"Parsed multipart message: plain={len(text_plain or '')} chars, "
        f"html={len(text_html or '')} chars"
    )

    if text_plain:
        clean_text = text_plain
    elif text_html:
        clean_text = simple_html_clean(text_html)
    else:
        logger.debug("No text part found, keeping raw message")
        clean_text = text

    return ParsedEmail(
        has_multipart=True,
        clean_text=clean_text,
        text_plain=text_plain,
        text_html=text_html,
        original_format=MIME_MULTIPART_FORMAT,
    )


def simple_html_clean(html: str) -> str:
    """
    Reduce an email HTML part to readable text, keeping its line structure.

    Line breaks and the ends of paragraphs, divs, list items and table rows
    become newlines; everything else is stripped.
    """
    if not html:
        return ""

    text = html
    for pattern in HTML_BLOCK_PATTERNS:
        text = pattern.sub('', text)
    text = BR_PATTERN.sub('\n', text)
    text = BLOCK_CLOSE_PATTERN.sub('\n', text)
    text = TAG_PATTERN.sub('', text)
    text = decode_basic_entities(text)
    text = CONTROL_CHAR_PATTERN.sub('', text)
    text = LINE_ENDING_PATTERN.sub('\n', text)
    text = HORIZONTAL_SPACE_PATTERN.sub(' ', text)
    text = SPACED_NEWLINE_PATTERN.sub('\n', text)
    text = EXCESS_NEWLINES_PATTERN.sub('\n\n', text)
    return text.strip()
