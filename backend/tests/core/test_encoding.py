"""
Tests for credential encoding helpers.
"""

import pytest

from apps.core.encoding import (
    EncodingError,
    decode_text,
    encode_bytes,
    ensure_base64url,
    is_base64url,
)


class TestIsBase64url:
    @pytest.mark.parametrize("value", ["AAEC", "abc-_09", "AQID=", "AQ=="])
    def test_accepts_base64url(self, value):
        assert is_base64url(value) is True

    @pytest.mark.parametrize("value", ["", "abc+/", "has space", "a===", None, 123, b"AAEC"])
    def test_rejects_other_values(self, value):
        assert is_base64url(value) is False


class TestEnsureBase64url:
    def test_strips_whitespace(self):
        assert ensure_base64url("  AAEC \n") == "AAEC"

    def test_non_string_raises_with_field_name(self):
        with pytest.raises(EncodingError, match="raw_id must be a string"):
            ensure_base64url(42, "raw_id")

    def test_invalid_characters_raise(self):
        with pytest.raises(EncodingError, match="signature must be a base64url string"):
            ensure_base64url("ab+/", "signature")

    def test_encoding_error_is_value_error(self):
        # pydantic validators turn ValueError into field errors
        assert issubclass(EncodingError, ValueError)


class TestEncodeBytes:
    def test_encodes_without_padding(self):
        assert encode_bytes(b"\x01\x02\x03\x04") == "AQIDBA"

    def test_urlsafe_alphabet(self):
        assert encode_bytes(b"\xfb\xff") == "-_8"

    def test_empty_input_is_empty_string(self):
        assert encode_bytes(b"") == ""
        assert encode_bytes(None) == ""

    def test_text_passes_through(self):
        assert encode_bytes("AQIDBA") == "AQIDBA"


class TestDecodeText:
    def test_decodes_unpadded(self):
        assert decode_text("AQIDBA") == b"\x01\x02\x03\x04"

    def test_tolerates_padding(self):
        assert decode_text("AQIDBA==") == b"\x01\x02\x03\x04"

    def test_decode_inverts_encode_for_key_material(self):
        key = bytes(range(77))
        assert decode_text(encode_bytes(key)) == key

    def test_rejects_non_base64url(self):
        with pytest.raises(EncodingError):
            decode_text("not base64!", "credential_id")
