"""
Tests for phone number keys.
"""
import pytest

from food_order_bot.phone import is_valid_phone_key, normalize_phone, to_whatsapp_address


class TestNormalizePhone:

    @pytest.mark.parametrize("raw", [
        "whatsapp:+919876543210",
        "+91 98765 43210",
        "919876543210",
        "9876543210",
        "98765-43210",
    ])
    def test_reduces_to_national_number(self, raw):
        assert normalize_phone(raw) == "9876543210"

    def test_is_idempotent(self):
        once = normalize_phone("whatsapp:+919876543210")
        assert normalize_phone(once) == once

    def test_other_country_code_keeps_all_digits(self):
        assert normalize_phone("whatsapp:+14155238886") == "14155238886"

    def test_malformed_input_degrades_to_digits(self):
        assert normalize_phone("call me at 12345") == "12345"
        assert normalize_phone("") == ""
        assert normalize_phone(None) == ""


class TestPhoneKeyValidation:

    def test_ten_digits_is_valid(self):
        assert is_valid_phone_key("9876543210")

    @pytest.mark.parametrize("key", ["", "12345", "98765432101", "98765abc10"])
    def test_other_shapes_are_invalid(self, key):
        assert not is_valid_phone_key(key)


class TestWhatsAppAddress:

    def test_formats_as_e164(self):
        assert to_whatsapp_address("9876543210") == "whatsapp:+919876543210"

    def test_unparseable_key_falls_back_to_country_code(self):
        assert to_whatsapp_address("abc") == "whatsapp:+91abc"
