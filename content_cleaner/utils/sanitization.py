"""
Sanitization Utility Module
Makes untrusted feed and email text safe to put in log records.
"""

import re
import unicodedata

# Terminal colour / cursor sequences
ANSI_ESCAPE_PATTERN = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

DEFAULT_PREVIEW_LENGTH = 100


def sanitize_for_logging(text: str, max_length: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """
    Sanitize text for safe logging to prevent Log Injection (CRLF) and terminal manipulation.

    The cleaners log previews of the raw input they receive. That input comes
    straight from RSS feeds and pasted emails, so it can carry CR/LF pairs that
    forge extra log lines, or ANSI sequences that rewrite the terminal.

    Args:
        text: The input string to sanitize. Non-strings are rendered with ``repr``.
        max_length: Maximum allowed length for the log entry (truncates if longer).

    Returns:
        Sanitized string safe for logging.
    """
    if text is None or text == "":
        return ""
    if not isinstance(text, str):
        text = repr(text)

    # Only the preview is logged, so avoid normalizing megabytes of email body
    if len(text) > max_length * 4:
        text = text[:max_length * 4]

    text = unicodedata.normalize('NFKC', text)
    text = text.replace('\n', '\\n').replace('\r', '\\r')
    text = ANSI_ESCAPE_PATTERN.sub('', text)

    # Remaining ASCII control characters (tab is kept)
    text = "".join(ch for ch in text if ch == '\t' or ord(ch) >= 32)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text
