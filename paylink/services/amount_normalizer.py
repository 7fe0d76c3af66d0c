"""
Amount normalization.

Pure conversion between a display currency and token base units:
- Input sanitization (whitespace, thousands separators)
- LOCAL -> TOKEN conversion through the exchange rate
- Truncation to the token's fixed precision

Conversion to base units always truncates, so a transfer never exceeds
what the user typed. No I/O; safe to call on every keystroke.
"""

import math
import re
from decimal import Decimal, InvalidOperation, localcontext
from fractions import Fraction

from paylink.config.constants import AMOUNT_PATTERN, TOKEN_DECIMALS, TOKEN_SYMBOL
from paylink.models.amount import AmountSpec
from paylink.models.types import DisplayCurrency
from paylink.utils.exceptions import InvalidAmount, InvalidInput, RateUnavailable

# Enough digits for any uint256 base-unit value times a realistic rate
_DISPLAY_PRECISION = 120

# Rates outside 1e-18..1e18 local units per token are rejected
_MAX_RATE_EXPONENT = 18

_AMOUNT_RE = re.compile(AMOUNT_PATTERN)


def sanitize_amount_input(value: object) -> str:
    """
    Trim whitespace and strip thousands separators.

    Args:
        value: Raw amount input

    Returns:
        Sanitized string ('' for None)
    """
    if value is None:
        return ""
    return str(value).strip().replace(",", "")


def parse_display_value(value: object) -> Decimal:
    """
    Parse a display amount into a positive finite Decimal.

    Raises:
        InvalidAmount: If the input is empty, malformed, non-finite or non-positive
    """
    normalized = sanitize_amount_input(value)
    if not normalized:
        raise InvalidAmount("Enter an amount.")

    if not _AMOUNT_RE.match(normalized):
        raise InvalidAmount("Enter a valid amount.")

    try:
        amount = Decimal(normalized)
    except InvalidOperation as e:
        raise InvalidAmount("Enter a valid amount.") from e

    if not amount.is_finite():
        raise InvalidAmount("Enter a valid amount.")

    if amount <= 0:
        raise InvalidAmount("Amount must be greater than 0.")

    return amount


def parse_rate(rate: object) -> Decimal:
    """
    Parse an exchange rate (local units per token).

    Raises:
        RateUnavailable: If the rate is missing, non-finite or non-positive
    """
    if rate is None:
        raise RateUnavailable()
    try:
        parsed = Decimal(str(rate))
    except InvalidOperation as e:
        raise RateUnavailable() from e
    if not parsed.is_finite() or parsed <= 0:
        raise RateUnavailable()
    if abs(parsed.adjusted()) > _MAX_RATE_EXPONENT:
        raise RateUnavailable()
    return parsed


def to_base_units(
    display_value: object,
    currency: DisplayCurrency,
    rate: object = None,
    decimals: int = TOKEN_DECIMALS,
) -> int:
    """
    Convert a display amount to token base units.

    Args:
        display_value: Amount as typed ("1,234.5")
        currency: Currency the amount is typed in
        rate: Local units per token (required for LOCAL)
        decimals: Token precision

    Returns:
        Positive integer amount in base units, truncated

    Raises:
        InvalidAmount: If the amount is invalid or truncates to zero
        RateUnavailable: If a LOCAL amount has no usable rate
    """
    amount = Fraction(parse_display_value(display_value))

    if DisplayCurrency(currency) == DisplayCurrency.LOCAL:
        amount = amount / Fraction(parse_rate(rate))

    # Exact rational arithmetic; floor == truncate for positive values
    base_units = math.floor(amount * 10**decimals)

    if base_units <= 0:
        raise InvalidAmount("Amount is too small.")

    return base_units


def _format_decimal(value: Decimal) -> str:
    """Plain decimal notation with trailing zeros trimmed."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def to_display(
    base_units: int,
    currency: DisplayCurrency,
    rate: object = None,
    decimals: int = TOKEN_DECIMALS,
) -> str:
    """
    Convert base units to an exact display string.

    The result is not rounded, so to_base_units(to_display(x)) == x.

    Args:
        base_units: Integer token amount
        currency: Target display currency
        rate: Local units per token (required for LOCAL)
        decimals: Token precision

    Returns:
        Decimal string without exponent
    """
    with localcontext() as ctx:
        ctx.prec = _DISPLAY_PRECISION
        value = Decimal(int(base_units)).scaleb(-decimals)
        if DisplayCurrency(currency) == DisplayCurrency.LOCAL:
            value = value * parse_rate(rate)
        return _format_decimal(value)


def build_amount_spec(
    display_value: str,
    currency: DisplayCurrency,
    rate: object = None,
    decimals: int = TOKEN_DECIMALS,
) -> AmountSpec:
    """
    Build an AmountSpec for the current input. Never raises.

    Base units are None when the input is empty or invalid; the error
    message is kept for display.
    """
    currency = DisplayCurrency(currency)
    display_value = display_value or ""

    if not sanitize_amount_input(display_value):
        return AmountSpec(display_currency=currency, display_value=display_value)

    try:
        base_units = to_base_units(display_value, currency, rate, decimals)
    except InvalidInput as e:
        return AmountSpec(
            display_currency=currency,
            display_value=display_value,
            error=e.message,
        )

    return AmountSpec(
        display_currency=currency,
        display_value=display_value,
        token_base_units=base_units,
    )


def check_balance(
    base_units: int,
    balance: int | None,
    token_symbol: str = TOKEN_SYMBOL,
) -> None:
    """
    Reject amounts above the sender's known balance.

    An unknown balance (None) is not checked.

    Raises:
        InvalidAmount: If base_units exceeds balance
    """
    if balance is not None and base_units > balance:
        raise InvalidAmount(f"Insufficient {token_symbol} balance.")
