"""
Email Formatter Module
Renders pasted email content for display in a chat or ticket thread

PATTERN RECOGNITION: Decision ladder. A multipart message is parsed and its
best part shown; a message that merely looks like an email (headers, an HTML
document) has its header block removed; anything else is shown untouched.
"""

import logging
import re

from content_cleaner.modules.html_entities import decode_basic_entities
from content_cleaner.modules.mime_parser import is_mime_multipart_message, parse_mime_multipart_message
from content_cleaner.utils.pattern_compiler import compile_patterns
from content_cleaner.utils.sanitization import sanitize_for_logging


logger = logging.getLogger(__name__)

FORMAT_CLEAN = "clean"
FORMAT_ORIGINAL = "original"

DEFAULT_SUMMARY_LENGTH = 150
# A summary may only be cut at a sentence end or space beyond this share
SUMMARY_BOUNDARY_RATIO = 0.7

KNOWN_HEADER_PATTERN = re.compile(
    r'^(?:From|To|Subject|Date|Content-Type|Content-Transfer-Encoding):', re.I
)
HEADER_LINE_PATTERN = re.compile(r'^[A-Z][A-Za-z-]*:\s')

EMAIL_SIGNAL_PATTERN = compile_patterns([
    r'Content-Type:\s*text/',
    r'Content-Transfer-Encoding:',
    r'^\s*Subject:',
    r'\b(?:From|To):[^\n]*?[\w.+-]+@[\w-]+(?:\.[\w-]+)*\.[A-Za-z]{2,}',
    r'<html[^>]*>[\s\S]*</html>',
], flags=re.I | re.M)

# html_to_markdown: (pattern, replacement), applied in order
MARKDOWN_RULES = [
    (re.compile(r'<!DOCTYPE[^>]*>', re.I), ''),
    (re.compile(r'</?html\b[^>]*>', re.I), ''),
    (re.compile(r'<head\b[^>]*>.*?</head>', re.I | re.S), ''),
    (re.compile(r'</?body\b[^>]*>', re.I), ''),
    (re.compile(r'<(strong|b)\b[^>]*>(.*?)</\1>', re.I | re.S), r'**\2**'),
    (re.compile(r'<(em|i)\b[^>]*>(.*?)</\1>', re.I | re.S), r'*\2*'),
    (re.compile(r'<a\b[^>]*?href=["\']([^"\']*)["\'][^>]*>(.*?)</a>', re.I | re.S), r'[\2](\1)'),
    (re.compile(r'<br\s*/?>', re.I), '\n'),
    (re.compile(r'<div\b[^>]*>', re.I), '\n'),
    (re.compile(r'</div>', re.I), ''),
    (re.compile(r'</?p\b[^>]*>', re.I), '\n'),
    (re.compile(r'<[^>]+>'), ''),
]
EXCESS_BLANK_LINES_PATTERN = re.compile(r'\n\s*\n\s*\n')


def html_to_markdown(html: str) -> str:
    """
    Best-effort HTML to Markdown for the "original" email view.

    Bold, italics and links survive (links as ``[text](url)``, URL kept);
    line breaks, divs and paragraphs become newlines; all other markup is
    dropped.
    """
    if not html:
        return ""

    text = html
    for pattern, replacement in MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    text = decode_basic_entities(text)
    text = EXCESS_BLANK_LINES_PATTERN.sub('\n\n', text)
    return text.strip()


def remove_email_headers(text: str) -> str:
    """
    Drop a leading header block and return the message body.

    Known headers (From, To, Subject, Date, Content-Type and
    Content-Transfer-Encoding) and their folded continuation lines are
    skipped. The body starts after the first blank line, or at the first line
    that is not shaped like ``Header-Name: value``.

    Args:
        text: Message with a header block on top

    Returns:
        The trimmed body. If every line is a header, the trimmed input.
    """
    lines = text.rstrip().split('\n')

    for index, raw_line in enumerate(lines):
        line = raw_line.rstrip('\r')

        if not line.strip():
            return '\n'.join(lines[index + 1:]).strip()

        if line[0] in ' \t':
            continue  # folded header

        if KNOWN_HEADER_PATTERN.match(line):
            continue

        if not HEADER_LINE_PATTERN.match(line):
            return '\n'.join(lines[index:]).strip()

    return text.strip()


def is_email_like_message(text: str) -> bool:
    """True if the text is multipart or carries typical email headers or an HTML document."""
    if not text or not isinstance(text, str):
        return False

    return is_mime_multipart_message(text) or bool(EMAIL_SIGNAL_PATTERN.search(text))


def format_email_for_chat(text: str, prefer_format: str = FORMAT_CLEAN) -> str:
    """
    Produce the display text for a pasted message.

    Args:
        text: Raw message
        prefer_format: "clean" shows the plain-text part; "original" shows
            the HTML part converted to Markdown when there is one. Unknown
            values are treated as "clean".

    Returns:
        Display text, "" for empty or non-string input
    """
    if not text or not isinstance(text, str):
        return ""

    if prefer_format not in (FORMAT_CLEAN, FORMAT_ORIGINAL):
        logger.warning(
            f"Unknown email format {sanitize_for_logging(prefer_format, 40)}, using '{FORMAT_CLEAN}'"
        )
        prefer_format = FORMAT_CLEAN

    if is_mime_multipart_message(text):
        parsed = parse_mime_multipart_message(text)
        if prefer_format == FORMAT_ORIGINAL and parsed.text_html:
            return html_to_markdown(parsed.text_html)
        return parsed.clean_text

    if is_email_like_message(text):
        return remove_email_headers(text)

    return text


def get_email_summary(text: str, max_length: int = DEFAULT_SUMMARY_LENGTH) -> str:
    """
    Short preview of a message.

    The text is cut at the last sentence end, or failing that the last space,
    as long as that boundary lies beyond 70% of max_length; otherwise the cut
    is hard. Cuts that do not end a sentence get "...".
    """
    if not isinstance(text, str):
        return ""

    content = parse_mime_multipart_message(text).clean_text or text
    if len(content) <= max_length:
        return content

    truncated = content[:max_length]
    threshold = max_length * SUMMARY_BOUNDARY_RATIO

    last_period = truncated.rfind('.')
    if last_period > threshold:
        return truncated[:last_period + 1]

    last_space = truncated.rfind(' ')
    if last_space > threshold:
        return truncated[:last_space] + '...'

    return truncated + '...'
