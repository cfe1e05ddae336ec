"""
Human-readable formatting of decoded values.

Display helpers only: formatted strings annotate decoded parameters and are
never stored in place of the raw values.
"""

from decimal import Decimal, localcontext
from typing import Optional


def to_decimal_amount(raw_value: int, decimals: int) -> Decimal:
    """Exact Decimal of raw_value / 10**decimals (no precision loss for uint256)"""
    raw_value = int(raw_value)
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    with localcontext() as ctx:
        ctx.prec = max(len(str(abs(raw_value))) + decimals + 2, 28)
        return Decimal(raw_value).scaleb(-decimals)


def format_amount(raw_value: int, decimals: int, symbol: Optional[str] = None) -> str:
    """
    Format a raw integer token amount.

    Uses integer arithmetic so values beyond 2**53 keep every digit.

    Examples:
        format_amount(1500000, 6, "USDC") -> "1.5 USDC"
        format_amount(10**18, 18) -> "1"
    """
    raw_value = int(raw_value)
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    sign = "-" if raw_value < 0 else ""
    whole, fraction = divmod(abs(raw_value), 10 ** decimals)
    text = f"{sign}{whole}"
    if decimals and fraction:
        text += "." + str(fraction).rjust(decimals, "0").rstrip("0")

    if symbol:
        return f"{text} {symbol}"
    return text


def format_address(address: str, length: int = 8) -> str:
    """Format address for display"""
    if not address:
        return ""
    if len(address) <= length + 4:
        return address
    return f"{address[:length]}...{address[-4:]}"


def format_seconds_to_time(seconds: int) -> str:
    """
    Format a countdown, e.g. 90 -> "1m 30s", 3661 -> "1h 1m 1s", 172800 -> "2d 0h 0m".
    Seconds are dropped once the span is a day or more.
    """
    if seconds <= 0:
        return "Ready now"

    days, rest = divmod(int(seconds), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0 or days > 0:
        parts.append(f"{hours}h")
    if minutes > 0 or hours > 0 or days > 0:
        parts.append(f"{minutes}m")
    if days == 0:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_relative_time(timestamp: int, now: int) -> str:
    """'in 2h 0m 0s' for future timestamps, '3d 0h 0m ago' for past ones"""
    diff = int(timestamp) - int(now)
    if diff > 0:
        return f"in {format_seconds_to_time(diff)}"
    if diff == 0:
        return "now"
    return f"{format_seconds_to_time(-diff)} ago"
