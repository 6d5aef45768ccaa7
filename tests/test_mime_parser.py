"""
Unit tests for content_cleaner/modules/mime_parser.py

Tests cover:
- is_mime_multipart_message: all three detection signals required
- parse_mime_multipart_message: the Apple Mail sample, collapsed single-line
  messages, the boundary-split fallback, and messages with no usable part
- decode_quoted_printable / decode_transfer_encoding
- simple_html_clean
"""

import pytest

from content_cleaner.modules.email_data import EmailPart, ParsedEmail
from content_cleaner.modules.mime_parser import (
    decode_quoted_printable,
    decode_transfer_encoding,
    is_mime_multipart_message,
    parse_mime_multipart_message,
    simple_html_clean,
)


SINGLE_LINE_MESSAGE = (
    "--Boundary_ABCDEFGHIJ Content-Type: text/plain; charset=utf-8 "
    "Content-Transfer-Encoding: quoted-printable "
    "Hola =C2=BFc=C3=B3mo est=C3=A1s? "
    "--Boundary_ABCDEFGHIJ Content-Type: text/html; charset=utf-8 "
    "Content-Transfer-Encoding: quoted-printable "
    "<p>Hola</p> "
    "--Boundary_ABCDEFGHIJ--"
)

HTML_ONLY_MESSAGE = (
    "--BOUNDARY0123456789\n"
    'Content-Type: text/html; charset="iso-8859-1"\n'
    "Content-Transfer-Encoding: quoted-printable\n"
    "\n"
    "<p>Caf=E9 &amp; t=E9</p><p>Second</p>\n"
    "--BOUNDARY0123456789--"
)

BASE64_MESSAGE = (
    "--boundary1234567890\n"
    "Content-Type: text/plain\n"
    "Content-Transfer-Encoding: base64\n"
    "\n"
    "SGVsbG8gd29ybGQ=\n"
    "--boundary1234567890--"
)

FLOWED_MESSAGE = (
    "--b0123456789x\n"
    "Content-Type: text/plain; charset=utf-8; format=flowed\n"
    "Content-Transfer-Encoding: 7bit\n"
    "\n"
    "Hello Bob,\n"
    "see you tomorrow.\n"
    "--b0123456789x\n"
    'Content-Type: text/html; charset="utf-8"; delsp=yes\n'
    "Content-Transfer-Encoding: 7bit\n"
    "\n"
    "<p>Hello Bob</p>\n"
    "--b0123456789x--"
)


# ---------------------------------------------------------------------------
# is_mime_multipart_message
# ---------------------------------------------------------------------------


class TestIsMimeMultipartMessage:
    def test_detects_apple_mail(self, apple_mail_message):
        assert is_mime_multipart_message(apple_mail_message) is True

    def test_detects_single_line_message(self):
        assert is_mime_multipart_message(SINGLE_LINE_MESSAGE) is True

    def test_regular_text(self):
        assert is_mime_multipart_message(
            "This is just a regular message without MIME formatting."
        ) is False

    @pytest.mark.parametrize("value", ["", None, 42])
    def test_invalid_input(self, value):
        assert is_mime_multipart_message(value) is False

    def test_missing_transfer_encoding(self):
        assert is_mime_multipart_message(
            "--abcdefghijkl\nContent-Type: text/plain\n\nhi"
        ) is False

    def test_boundary_too_short(self):
        assert is_mime_multipart_message(
            "--abc\nContent-Type: text/plain\nContent-Transfer-Encoding: 7bit\n\nhi"
        ) is False


# ---------------------------------------------------------------------------
# parse_mime_multipart_message
# ---------------------------------------------------------------------------


class TestParseMimeMultipartMessage:
    def test_apple_mail(self, apple_mail_message):
        result = parse_mime_multipart_message(apple_mail_message)

        assert isinstance(result, ParsedEmail)
        assert result.has_multipart is True
        assert result.original_format == "mime-multipart"
        assert "Hola Richard" in result.text_plain
        assert "setup de la cuenta" in result.text_plain
        assert "<html>" in result.text_html
        assert "Hola Richard" in result.text_html
        assert result.clean_text == result.text_plain

    def test_apple_mail_plain_part_kept_verbatim(self, apple_mail_message):
        result = parse_mime_multipart_message(apple_mail_message)

        assert result.text_plain.startswith("Hola Richard, te paso un resumen")
        assert result.text_plain.endswith("generacion de contenidos para autoridad.")
        assert "mercado américano" in result.text_plain
        assert "Content-Transfer-Encoding" not in result.text_plain
        assert "Apple-Mail=" not in result.text_plain

    def test_non_mime_message(self):
        text = "Just a regular message"
        result = parse_mime_multipart_message(text)

        assert result.has_multipart is False
        assert result.text_plain is None
        assert result.text_html is None
        assert result.original_format is None
        assert result.clean_text == text

    def test_single_line_message(self):
        result = parse_mime_multipart_message(SINGLE_LINE_MESSAGE)

        assert result.text_plain == "Hola ¿cómo estás?"
        assert result.text_html == "<p>Hola</p>"
        assert result.clean_text == "Hola ¿cómo estás?"

    def test_html_only_message_uses_part_charset(self):
        result = parse_mime_multipart_message(HTML_ONLY_MESSAGE)

        assert result.text_plain is None
        assert result.text_html == "<p>Café &amp; té</p><p>Second</p>"
        assert result.clean_text == "Café & té\nSecond"

    def test_boundary_split_fallback_decodes_base64(self):
        result = parse_mime_multipart_message(BASE64_MESSAGE)

        assert result.has_multipart is True
        assert result.text_plain == "Hello world"
        assert result.clean_text == "Hello world"

    def test_boundary_split_last_part_wins(self):
        text = (
            "--b0123456789x\nContent-Type: text/plain\nContent-Transfer-Encoding: 7bit\n\nFirst\n"
            "--b0123456789x\nContent-Type: text/plain\nContent-Transfer-Encoding: 7bit\n\nSecond\n"
            "--b0123456789x--"
        )
        assert parse_mime_multipart_message(text).text_plain == "Second"

    def test_strategies_are_not_merged(self):
        """The HTML part has no charset, so only the boundary split could find it."""
        text = (
            "--b0123456789x\nContent-Type: text/plain; charset=utf-8\n"
            "Content-Transfer-Encoding: 7bit\n\nPlain body\n"
            "--b0123456789x\nContent-Type: text/html\n"
            "Content-Transfer-Encoding: 7bit\n\n<p>Html body</p>\n"
            "--b0123456789x--"
        )
        result = parse_mime_multipart_message(text)

        assert result.text_plain == "Plain body"
        assert result.text_html is None

    def test_content_type_parameters_after_charset(self):
        result = parse_mime_multipart_message(FLOWED_MESSAGE)

        assert result.text_plain == "Hello Bob,\nsee you tomorrow."
        assert result.text_html == "<p>Hello Bob</p>"

    def test_flowed_quoted_printable_part_is_decoded(self):
        text = (
            "--b0123456789x\n"
            "Content-Type: text/plain; charset=utf-8; format=flowed; delsp=yes\n"
            "Content-Transfer-Encoding: quoted-printable\n"
            "\n"
            "caf=C3=A9\n"
            "--b0123456789x--"
        )
        assert parse_mime_multipart_message(text).text_plain == "café"

    def test_flowed_parameters_on_single_line(self):
        text = (
            "--Boundary_ABCDEFGHIJ Content-Type: text/plain; charset=utf-8; format=flowed "
            "Content-Transfer-Encoding: quoted-printable caf=C3=A9 --Boundary_ABCDEFGHIJ--"
        )
        assert parse_mime_multipart_message(text).text_plain == "café"

    def test_no_extractable_part_keeps_raw_text(self):
        text = "--abcdefghijkl\nContent-Type: text/plain\nContent-Transfer-Encoding: 7bit"
        result = parse_mime_multipart_message(text)

        assert result.has_multipart is True
        assert result.text_plain is None
        assert result.text_html is None
        assert result.clean_text == text

    def test_to_dict(self):
        data = parse_mime_multipart_message("plain").to_dict()
        assert data == {
            "has_multipart": False,
            "clean_text": "plain",
            "text_plain": None,
            "text_html": None,
            "original_format": None,
        }


# ---------------------------------------------------------------------------
# Transfer decoding
# ---------------------------------------------------------------------------


class TestDecodeQuotedPrintable:
    def test_multibyte_utf8(self):
        assert decode_quoted_printable("caf=C3=A9") == "café"

    def test_soft_line_breaks_removed(self):
        assert decode_quoted_printable("long=\r\nline and more=\nstuff") == "longline and morestuff"

    def test_crlf_normalized(self):
        assert decode_quoted_printable("a\r\nb") == "a\nb"

    def test_escaped_equals_sign(self):
        assert decode_quoted_printable("x=3Dy") == "x=y"

    def test_malformed_escape_passes_through(self):
        assert decode_quoted_printable("=GG stays") == "=GG stays"

    def test_latin1_charset(self):
        assert decode_quoted_printable("t=E9", "iso-8859-1") == "té"

    def test_unknown_charset_falls_back_to_utf8(self):
        assert decode_quoted_printable("caf=C3=A9", "x-no-such-charset") == "café"

    def test_invalid_bytes_replaced(self):
        assert decode_quoted_printable("bad=FF") == "bad\ufffd"

    def test_empty(self):
        assert decode_quoted_printable("") == ""


class TestDecodeTransferEncoding:
    def test_base64(self):
        assert decode_transfer_encoding("SGVsbG8gd29ybGQ=", "BASE64", None) == "Hello world"

    def test_undecodable_base64_kept(self):
        assert decode_transfer_encoding("not base64!!", "base64", "utf-8") == "not base64!!"

    @pytest.mark.parametrize("encoding", [None, "7bit", "8bit", "binary"])
    def test_identity_encodings(self, encoding):
        assert decode_transfer_encoding("caf=C3=A9", encoding, "utf-8") == "caf=C3=A9"


# ---------------------------------------------------------------------------
# simple_html_clean
# ---------------------------------------------------------------------------


class TestSimpleHtmlClean:
    def test_structure_preserved(self):
        html = (
            "<html><head><title>X</title><style>p{}</style></head><body>"
            "<p>Hello &amp; welcome</p><div>Line two<br>Line three</div></body></html>"
        )
        assert simple_html_clean(html) == "Hello & welcome\nLine two\nLine three"

    def test_script_removed(self):
        assert simple_html_clean("<script>var a = 1;</script><p>Body</p>") == "Body"

    def test_blank_lines_collapsed(self):
        assert simple_html_clean("<p>One</p><br><br><br><br><p>Two</p>") == "One\n\nTwo"

    def test_control_characters_dropped(self):
        assert simple_html_clean("a\x00b\x07c\r\nd\te") == "abc\nd e"

    def test_list_items(self):
        assert simple_html_clean("<ul><li>One</li><li>Two</li></ul>") == "One\nTwo"

    def test_apple_mail_html_part(self, apple_mail_message):
        html = parse_mime_multipart_message(apple_mail_message).text_html
        result = simple_html_clean(html)

        assert result.startswith("Hola Richard, te paso un resumen de lo que hablamos:\n\n- Hay que hacer")
        assert "<" not in result
        assert "content-type" not in result

    def test_empty(self):
        assert simple_html_clean("") == ""


class TestEmailPart:
    def test_defaults(self):
        part = EmailPart("text/plain", "body")
        assert part.encoding is None
        assert part.charset is None
