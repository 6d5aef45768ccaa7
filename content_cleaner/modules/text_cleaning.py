"""
Text Cleaning Module
Turns RSS titles, feed descriptions and HTML fragments into short plain text

PATTERN RECOGNITION: This is a Pipeline - each stage is a small, single-purpose
substitution and the order is the contract. Tag contents are extracted before
tags are stripped (or link text would be lost), and entities are decoded
before the "is anything left?" check (or "&nbsp;&hellip;" would pass as text).

Every entry point accepts anything and returns a string; bad input degrades to
"" instead of raising, because the callers are display paths that have no
sensible way to recover from an exception.
"""

import logging
import re

from content_cleaner.modules.html_entities import decode_html_entities
from content_cleaner.utils.pattern_compiler import apply_in_order, compile_pattern_list
from content_cleaner.utils.sanitization import sanitize_for_logging


logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 500
# A word-boundary cut may give back at most this many characters
WORD_BOUNDARY_WINDOW = 100

# Quality gate constants
MIN_VALID_LENGTH = 10
MAX_SPECIAL_CHAR_RATIO = 0.3
MIN_MEANINGFUL_WORDS = 3
MIN_WORD_LENGTH = 3

# Stage 1
CDATA_PATTERN = re.compile(r'<!\[CDATA\[(.*?)\]\]>', re.S)

# Stage 2: (pattern, replacement). Block-level tags leave a space behind.
INLINE_CONTENT_PATTERNS = [
    (re.compile(r'<a\b[^>]*>(.*?)</a>', re.I | re.S), r'\1'),
    (re.compile(r'<(b|strong|i|em)\b[^>]*>(.*?)</\1>', re.I | re.S), r'\2'),
    (re.compile(r'<(h[1-6])\b[^>]*>(.*?)</\1>', re.I | re.S), r'\2 '),
    (re.compile(r'<p\b[^>]*>(.*?)</p>', re.I | re.S), r'\1 '),
    (re.compile(r'<(div|span)\b[^>]*>(.*?)</\1>', re.I | re.S), r'\2 '),
]

# Stage 3: removed together with their content. Google News puts the
# publisher stamp in <font>.
FULL_REMOVAL_PATTERNS = [
    re.compile(r'<font\b[^>]*>.*?</font>', re.I | re.S),
    re.compile(r'<(script|style)\b[^>]*>.*?</\1>', re.I | re.S),
    re.compile(r'<!--.*?-->', re.S),
]

# Stage 4
TAG_PATTERN = re.compile(r'<[^>]*>')
HAS_TAG_PATTERN = re.compile(r'<[^>]+>')

# Stage 6
URL_PATTERNS = compile_pattern_list([
    r'https?://[^\s<>"{}|\\^`\[\]]+',
    r'\bwww\.[\w-]+\.[^\s<>"{}|\\^`\[\]]+',
    r'ftp://[^\s<>"{}|\\^`\[\]]+',
    r'(?<![a-zA-Z0-9._%+-])[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}',
])

# Stage 7: trailing "- Reuters", "via TechCrunch", "| Source", ... Known to
# miss unusual phrasings.
ATTRIBUTION_PATTERNS = compile_pattern_list([
    r'\s+[-–—]\s*[A-Za-z][A-Za-z\s&.,]+$',
    r'^\s*[-–—]\s*',
    r'\s+via\s+[A-Za-z][A-Za-z\s&.,]+$',
    r'\s*\bsource:\s*[A-Za-z][A-Za-z\s&.,]+$',
    r'\s*\|\s*[A-Za-z][A-Za-z\s&.,]+$',
    r'\s+by\s+[A-Za-z][A-Za-z\s&.,]+$',
    r'\s+according\s+to\s+[A-Za-z][A-Za-z\s&.,]+$',
    r'\s+reports?\s+[A-Za-z][A-Za-z\s&.,]+$',
])

# Stage 8
ZERO_WIDTH_PATTERN = re.compile('[\u200b-\u200d\ufeff]')
WHITESPACE_PATTERN = re.compile(r'\s+')
DOUBLE_QUOTE_PATTERN = re.compile('[“”]')
SINGLE_QUOTE_PATTERN = re.compile('[‘’]')
DASH_PATTERN = re.compile('[–—]')

# Stage 9
UNWANTED_PHRASE_PATTERNS = compile_pattern_list([
    r'\s*\bread\s+more\.{0,3}$',
    r'\s*\bcontinue\s+reading\.{0,3}$',
    r'\s*\bclick\s+here\.{0,3}$',
    r'\s*\bfull\s+story\.{0,3}$',
    r'\s*\bmore\s+details\.{0,3}$',
    r'\s*\bsee\s+full\s+article\.{0,3}$',
    r'\s*\blearn\s+more\.{0,3}$',
    r'\s*\bfind\s+out\s+more\.{0,3}$',
    r'\s*\bget\s+the\s+full\s+story\.{0,3}$',
    r'\s*\bread\s+the\s+full\s+article\.{0,3}$',
])

# Stage 10
WORD_CHAR_PATTERN = re.compile(r'\w')
LEADING_PUNCTUATION_PATTERN = re.compile(r'^[.,;:!?]+\s*')
# Only punctuation standing on its own; "technology." keeps its period
TRAILING_PUNCTUATION_PATTERN = re.compile(r'\s+[.,;:!?]+$')

# Titles
TITLE_CATEGORY_PREFIX_PATTERN = re.compile(r'^\[.*?\]\s*')
TITLE_CAPS_SUFFIX_PATTERN = re.compile(r'\s*-\s*[A-Z]{2,}\s*$')

# Quality gate
SPECIAL_CHAR_PATTERN = re.compile(r'[^\w\s.,!?-]')
LETTER_PATTERN = re.compile(r'[^\W\d_]')


def _trace(label: str, text: str) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s: %s", label, sanitize_for_logging(text))


def unwrap_cdata(text: str) -> str:
    return CDATA_PATTERN.sub(r'\1', text)


def extract_inline_content(text: str) -> str:
    """Replace common inline/block tag pairs with their inner text."""
    for pattern, replacement in INLINE_CONTENT_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def remove_full_tags(text: str) -> str:
    """Delete <font>, <script>, <style> and comments including their content."""
    return apply_in_order(FULL_REMOVAL_PATTERNS, text)


def strip_tags(text: str) -> str:
    return TAG_PATTERN.sub('', text)


def remove_urls(text: str) -> str:
    """
    Remove http(s), www, ftp links and email addresses.

    Nothing is put in their place; the whitespace stage cleans up the double
    spaces this leaves behind.
    """
    return apply_in_order(URL_PATTERNS, text)


def remove_source_attribution(text: str) -> str:
    """Strip trailing publisher credits such as " - Reuters" or " via TechCrunch"."""
    return apply_in_order(ATTRIBUTION_PATTERNS, text)


def normalize_whitespace(text: str) -> str:
    """
    Collapse whitespace and fold typographic characters to plain ASCII.

    Curly quotes become straight quotes and en/em dashes become hyphens.
    """
    text = ZERO_WIDTH_PATTERN.sub('', text)
    text = WHITESPACE_PATTERN.sub(' ', text).strip()
    text = DOUBLE_QUOTE_PATTERN.sub('"', text)
    text = SINGLE_QUOTE_PATTERN.sub("'", text)
    return DASH_PATTERN.sub('-', text)


def remove_unwanted_phrases(text: str) -> str:
    """Drop trailing calls to action ("Read more...", "Click here", ...)."""
    return apply_in_order(UNWANTED_PHRASE_PATTERNS, text)


def final_cleanup(text: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """
    Reject meaningless leftovers, trim stray punctuation and enforce the length cap.

    Args:
        text: Output of the earlier stages
        max_length: Longest result before truncation kicks in

    Returns:
        Cleaned text, "" when nothing meaningful is left. A truncated result
        ends with "..." and is at most max_length + 3 characters.
    """
    cleaned = text.strip()

    if len(cleaned) < 3 or not WORD_CHAR_PATTERN.search(cleaned):
        return ''

    cleaned = LEADING_PUNCTUATION_PATTERN.sub('', cleaned)
    cleaned = TRAILING_PUNCTUATION_PATTERN.sub('', cleaned)

    if len(cleaned) > max_length:
        cut = cleaned[:max_length].rstrip()
        last_space = cut.rfind(' ')
        if last_space > max_length - WORD_BOUNDARY_WINDOW:
            cut = cut[:last_space]
        cleaned = cut.rstrip() + '...'

    return cleaned.strip()


def clean_html_content(html_string: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """
    Convert an HTML fragment or RSS description into clean plain text.

    Args:
        html_string: Raw snippet. Non-strings and "" are accepted and give "".
        max_length: Output length cap (an ellipsis may add 3 characters)

    Returns:
        Plain text, or "" when nothing meaningful could be extracted

    Example:
        >>> clean_html_content('<p>New <b>chip</b> &amp; board - Reuters</p>')
        'New chip & board'
    """
    if not html_string or not isinstance(html_string, str):
        return ''

    _trace("clean_html_content input", html_string)

    cleaned = html_string.strip()
    cleaned = unwrap_cdata(cleaned)
    cleaned = extract_inline_content(cleaned)
    cleaned = remove_full_tags(cleaned)
    cleaned = strip_tags(cleaned)
    cleaned = decode_html_entities(cleaned)
    cleaned = remove_urls(cleaned)
    cleaned = remove_source_attribution(cleaned)
    cleaned = normalize_whitespace(cleaned)
    cleaned = remove_unwanted_phrases(cleaned)
    cleaned = final_cleanup(cleaned, max_length)

    _trace("clean_html_content output", cleaned)
    return cleaned


def extract_clean_text(content: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """
    Cheaper variant for input that is usually plain text already.

    Input without any tag skips the markup stages; anything with a tag goes
    through clean_html_content.
    """
    if not content or not isinstance(content, str):
        return ''

    if not HAS_TAG_PATTERN.search(content):
        cleaned = decode_html_entities(content)
        cleaned = remove_urls(cleaned)
        cleaned = normalize_whitespace(cleaned)
        return final_cleanup(cleaned, max_length)

    return clean_html_content(content, max_length)


def clean_news_title(title: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """
    Clean a feed item title.

    Titles get no inline-content extraction (they rarely carry structure) but
    do get two extra rules: a leading "[Category]" tag and a trailing
    " - CNN" style all-caps publisher suffix are removed.
    """
    if not title or not isinstance(title, str):
        return ''

    _trace("clean_news_title input", title)

    cleaned = title.strip()
    cleaned = unwrap_cdata(cleaned)
    cleaned = remove_full_tags(cleaned)
    cleaned = strip_tags(cleaned)
    cleaned = decode_html_entities(cleaned)
    cleaned = remove_source_attribution(cleaned)
    cleaned = normalize_whitespace(cleaned)
    cleaned = TITLE_CATEGORY_PREFIX_PATTERN.sub('', cleaned)
    cleaned = TITLE_CAPS_SUFFIX_PATTERN.sub('', cleaned)

    result = final_cleanup(cleaned, max_length)
    _trace("clean_news_title output", result)
    return result


def is_valid_cleaned_content(content: str) -> bool:
    """
    Quality gate for cleaned text.

    Rejects text that is too short, mostly symbols (entity-decoding garbage),
    or without at least three real words. Digits-only tokens such as "2024"
    are not words.

    Args:
        content: Output of one of the cleaners

    Returns:
        True if the text is worth displaying
    """
    if not content or not isinstance(content, str) or len(content) < MIN_VALID_LENGTH:
        return False

    special_ratio = len(SPECIAL_CHAR_PATTERN.findall(content)) / len(content)
    if special_ratio > MAX_SPECIAL_CHAR_RATIO:
        return False

    words = [
        word for word in content.split()
        if len(word) >= MIN_WORD_LENGTH and LETTER_PATTERN.search(word)
    ]
    return len(words) >= MIN_MEANINGFUL_WORDS
