"""
Normalization and validation for decimal/monetary values.

Prices arrive from forms as strings in either Brazilian ("1.234,56") or
US ("1234.56") notation. These helpers turn them into a canonical decimal
string and enforce precision/scale limits before anything is persisted.
None of them raise for bad input, so they can be called directly from
serializer validation.
"""
import math
import re
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

CANONICAL_DECIMAL_RE = re.compile(r'-?\d+(\.\d+)?')
WHITESPACE_RE = re.compile(r'\s+')
LEADING_ZEROS_RE = re.compile(r'^0+')
NON_DIGIT_RE = re.compile(r'[^0-9]')

DEFAULT_MAX_DIGITS = 12
DEFAULT_MAX_SCALE = 4


@dataclass(frozen=True)
class Present:
    """A normalized decimal string, e.g. Present('1234.56')"""
    value: str

    def __str__(self):
        return self.value


class Absent:
    """No usable value was supplied (missing, blank or unparseable)"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return 'ABSENT'


ABSENT = Absent()

NormalizedDecimal = Union[Present, Absent]


@dataclass(frozen=True)
class DecimalValidationOptions:
    """
    Policy applied by validate_decimal.

    Attributes:
        required: reject absent values (default False)
        allow_negative: accept values below zero (default False)
        max_digits: maximum integer + fractional digits, sign excluded (default 12)
        max_scale: maximum digits after the decimal separator (default 4)
    """
    required: bool = False
    allow_negative: bool = False
    max_digits: int = DEFAULT_MAX_DIGITS
    max_scale: int = DEFAULT_MAX_SCALE

    def __post_init__(self):
        if self.max_digits < 1:
            raise ValueError('max_digits must be at least 1')
        if self.max_scale < 0:
            raise ValueError('max_scale must not be negative')


def _is_finite_number(raw: Any) -> bool:
    if isinstance(raw, bool):
        return False
    if isinstance(raw, int):
        return True
    if isinstance(raw, float):
        return math.isfinite(raw)
    if isinstance(raw, Decimal):
        return raw.is_finite()
    return False


def _number_to_string(raw) -> str:
    """Plain positional notation: 5.0 -> '5', 1e-07 -> '0.0000001'"""
    if isinstance(raw, int):
        return str(raw)
    if raw == 0:
        return '0'
    if isinstance(raw, float):
        text = format(Decimal(repr(raw)), 'f')
        # float repr carries ".0" on integral values only
        return text[:-2] if text.endswith('.0') else text
    return format(raw, 'f')


def _parse_finite(normalized: str) -> Optional[Decimal]:
    if not CANONICAL_DECIMAL_RE.fullmatch(normalized):
        return None
    try:
        number = Decimal(normalized)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def normalize_decimal(raw: Any) -> NormalizedDecimal:
    """
    Normalize a decimal value from the supported input formats.

    - 123.45 -> '123.45'
    - '1.234,56' -> '1234.56' ('.' as thousands, ',' as decimal separator)
    - '1234,56' -> '1234.56'
    - '1234.56' -> '1234.56'

    Args:
        raw: number, string, None or anything else

    Returns:
        Present(canonical string) or ABSENT when the input is missing, blank
        or does not end up as a finite number.
    """
    if raw is None:
        return ABSENT
    if _is_finite_number(raw):
        return Present(_number_to_string(raw))

    s = str(raw).strip()
    if s == '':
        return ABSENT

    if '.' in s and ',' in s:
        s = s.replace('.', '').replace(',', '.', 1)
    else:
        # '1,234,56' only loses its first comma here; the final check rejects it
        s = s.replace(',', '.', 1)

    s = WHITESPACE_RE.sub('', s)

    if _parse_finite(s) is None:
        return ABSENT
    return Present(s)


def validate_decimal_precision(normalized: str, max_digits: int = DEFAULT_MAX_DIGITS,
                               max_scale: int = DEFAULT_MAX_SCALE) -> bool:
    """
    Check precision (total digits) and scale (fractional digits).

    Examples:
        validate_decimal_precision('12345678.1234', 12, 4)      # True
        validate_decimal_precision('1234567890123.1234', 12, 4) # False
    """
    int_part_raw, _, frac_part_raw = normalized.partition('.')
    int_part = LEADING_ZEROS_RE.sub('', int_part_raw) or '0'

    int_digits = NON_DIGIT_RE.sub('', int_part)
    frac_digits = NON_DIGIT_RE.sub('', frac_part_raw)

    total_digits = len(int_digits) + len(frac_digits)
    scale = len(frac_digits)

    if total_digits > max_digits:
        return False
    if scale > max_scale:
        return False
    return True


def validate_decimal(value: Any, options: Optional[DecimalValidationOptions] = None, **overrides) -> bool:
    """
    Normalize and validate a decimal value against a policy.

    Args:
        value: number, string, None or anything else
        options: DecimalValidationOptions, defaults apply when omitted
        **overrides: individual option fields, e.g. allow_negative=True

    Returns:
        True if the value satisfies the required/negative/precision/scale policy.

    Examples:
        validate_decimal('1.234,56', required=True)  # True
        validate_decimal(None, required=True)        # False
    """
    options = options or DecimalValidationOptions()
    if overrides:
        options = replace(options, **overrides)

    normalized = normalize_decimal(value)
    if normalized is ABSENT:
        return not options.required

    number = _parse_finite(normalized.value)
    if number is None:
        return False

    if not options.allow_negative and number < 0:
        return False

    return validate_decimal_precision(normalized.value, options.max_digits, options.max_scale)


def to_decimal(raw: Any, options: Optional[DecimalValidationOptions] = None) -> Optional[Decimal]:
    """
    Validate then convert to Decimal for persistence.

    Returns None for an absent, non-required value. Raises ValueError when
    the value fails the policy.
    """
    options = options or DecimalValidationOptions()
    if not validate_decimal(raw, options):
        raise ValueError(f'Invalid decimal value: {raw!r}')
    normalized = normalize_decimal(raw)
    if normalized is ABSENT:
        return None
    return Decimal(normalized.value)
