"""
HTML Entity Decoding
Shared by the feed cleaner and the email formatter

Decoding is deliberately conservative: numeric references only become
characters in the printable ASCII and Latin-1 ranges, so a crafted
``&#0;`` or ``&#x202E;`` (right-to-left override) can never reach the
display layer.
"""

import re
from typing import Dict

# Applied literally, in this order. "&amp;" comes first so double-escaped
# feed text ("&amp;quot;") still decodes fully.
NAMED_ENTITIES: Dict[str, str] = {
    '&amp;': '&',
    '&lt;': '<',
    '&gt;': '>',
    '&quot;': '"',
    '&apos;': "'",
    '&nbsp;': ' ',
    '&ndash;': '–',
    '&mdash;': '—',
    '&ldquo;': '“',
    '&rdquo;': '”',
    '&lsquo;': '‘',
    '&rsquo;': '’',
    '&hellip;': '...',
    '&copy;': '©',
    '&reg;': '®',
    '&trade;': '™',
    '&deg;': '°',
    '&plusmn;': '±',
    '&frac14;': '¼',
    '&frac12;': '½',
    '&frac34;': '¾',
    '&euro;': '€',
    '&pound;': '£',
    '&yen;': '¥',
    '&sect;': '§',
    '&para;': '¶',
    '&dagger;': '†',
    '&Dagger;': '‡',
    '&bull;': '•',
    '&prime;': '′',
    '&Prime;': '″',
    '&lsaquo;': '‹',
    '&rsaquo;': '›',
    '&oline;': '‾',
    '&frasl;': '⁄',
    '&weierp;': '℘',
    '&image;': 'ℑ',
    '&real;': 'ℜ',
    '&alefsym;': 'ℵ',
    '&larr;': '←',
    '&uarr;': '↑',
    '&rarr;': '→',
    '&darr;': '↓',
    '&harr;': '↔',
    '&crarr;': '↵',
    '&lArr;': '⇐',
    '&uArr;': '⇑',
    '&rArr;': '⇒',
    '&dArr;': '⇓',
    '&hArr;': '⇔',
}

# The subset an email HTML part actually needs
BASIC_ENTITIES: Dict[str, str] = {
    '&amp;': '&',
    '&lt;': '<',
    '&gt;': '>',
    '&quot;': '"',
    '&apos;': "'",
    '&nbsp;': ' ',
}

DECIMAL_ENTITY_PATTERN = re.compile(r'&#(\d+);')
HEX_ENTITY_PATTERN = re.compile(r'&#[xX]([0-9a-fA-F]+);')
UNKNOWN_ENTITY_PATTERN = re.compile(r'&[a-zA-Z][a-zA-Z0-9]*;')


def _code_point_to_text(code: int) -> str:
    """Printable ASCII and Latin-1 only; anything else decodes to nothing."""
    if 31 < code < 127 or 160 <= code <= 255:
        return chr(code)
    return ''


def decode_numeric_entities(text: str) -> str:
    """Decode ``&#NNN;`` and ``&#xHH;`` references within the safe ranges."""
    text = DECIMAL_ENTITY_PATTERN.sub(
        lambda m: _code_point_to_text(int(m.group(1))), text
    )
    return HEX_ENTITY_PATTERN.sub(
        lambda m: _code_point_to_text(int(m.group(1), 16)), text
    )


def decode_html_entities(text: str) -> str:
    """
    Decode HTML entities the way feed text needs it.

    Named entities from NAMED_ENTITIES are replaced first, then numeric and
    hexadecimal references, and finally any remaining ``&name;`` entity that
    is not in the table is dropped.

    Args:
        text: Text with HTML markup already stripped

    Returns:
        Text with entities decoded or removed
    """
    for entity, replacement in NAMED_ENTITIES.items():
        text = text.replace(entity, replacement)
    text = decode_numeric_entities(text)
    return UNKNOWN_ENTITY_PATTERN.sub('', text)


def decode_basic_entities(text: str) -> str:
    """
    Minimal decoding for email HTML: the six markup entities plus numeric
    references. Unknown named entities are left as they are.
    """
    for entity, replacement in BASIC_ENTITIES.items():
        text = text.replace(entity, replacement)
    return decode_numeric_entities(text)
