"""
Unit tests for display formatting helpers.
"""
from decimal import Decimal
import sys
import os

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from timelock_engine.services.decoders.formatter import (
    format_amount,
    to_decimal_amount,
    format_address,
    format_seconds_to_time,
    format_relative_time,
)


class TestFormatAmount:
    """Token amount formatting."""

    def test_usdc(self):
        assert format_amount(1500000, 6, "USDC") == "1.5 USDC"

    def test_whole_ether(self):
        assert format_amount(10 ** 18, 18) == "1"

    def test_smallest_unit(self):
        assert format_amount(1, 18, "ETH") == "0.000000000000000001 ETH"

    def test_zero_decimals(self):
        assert format_amount(42, 0, "NFT") == "42 NFT"

    def test_max_uint256_keeps_all_digits(self):
        raw = 2 ** 256 - 1
        text = format_amount(raw, 18)

        assert text.replace(".", "") == str(raw)

    def test_negative_decimals_rejected(self):
        with pytest.raises(ValueError):
            format_amount(1, -1)

    def test_decimal_amount_is_exact(self):
        raw = 2 ** 256 - 1
        assert str(to_decimal_amount(raw, 18)).replace(".", "") == str(raw)
        assert to_decimal_amount(1500000, 6) == Decimal("1.5")


class TestFormatTime:
    """Countdown and relative time strings."""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "Ready now"),
        (-5, "Ready now"),
        (45, "45s"),
        (90, "1m 30s"),
        (3661, "1h 1m 1s"),
        (172800, "2d 0h 0m"),
    ])
    def test_seconds_to_time(self, seconds, expected):
        assert format_seconds_to_time(seconds) == expected

    def test_relative_future(self):
        assert format_relative_time(1000 + 7200, 1000) == "in 2h 0m 0s"

    def test_relative_past(self):
        assert format_relative_time(1000, 1000 + 90) == "1m 30s ago"

    def test_relative_now(self):
        assert format_relative_time(1000, 1000) == "now"


class TestFormatAddress:

    def test_shortens_address(self):
        assert format_address("0x" + "ab" * 20) == "0xababab...abab"

    def test_short_input_unchanged(self):
        assert format_address("0x1234") == "0x1234"
        assert format_address("") == ""
