"""
Labor Administration - RUT Utility Tests
"""

import pytest

from app.utils.rut import clean_rut, compute_check_digit, format_rut, validate_rut


class TestValidateRut:
    """Test cases for RUT validation."""

    @pytest.mark.parametrize("rut", [
        "12.345.678-5",
        "12345678-5",
        "11.111.111-1",
        "28.123.456-0",
        "9.876.543-3",
    ])
    def test_valid_ruts(self, rut):
        assert validate_rut(rut) is True

    def test_wrong_check_digit(self):
        assert validate_rut("12.345.678-9") is False

    def test_missing_hyphen(self):
        assert validate_rut("123456785") is False

    def test_empty(self):
        assert validate_rut("") is False

    def test_garbage(self):
        assert validate_rut("abc-d") is False

    def test_lowercase_k_is_accepted(self):
        # 10.000.013-K: body whose check digit is K
        body = "10000013"
        assert compute_check_digit(body) == "K"
        assert validate_rut(f"{body}-k") is True


class TestFormatRut:
    """Test cases for RUT formatting."""

    def test_adds_thousand_separators(self):
        assert format_rut("12345678-5") == "12.345.678-5"

    def test_seven_digit_body(self):
        assert format_rut("9876543-3") == "9.876.543-3"

    def test_already_formatted(self):
        assert format_rut("11.111.111-1") == "11.111.111-1"

    def test_clean_rut(self):
        assert clean_rut(" 12.345.678-k ") == "12345678-K"
