"""Key normalization: YAML mapping keys to JSON string keys."""

from __future__ import annotations

import math
import struct
from decimal import Decimal

from .errors import UnsupportedKeyTypeError
from .values import Value, VBool, VFloat, VInt, VText, VUint


# ---------------------------------------------------------------------------
# Float formatting
# ---------------------------------------------------------------------------

def _to_float32(f: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", f))[0]
    except OverflowError:
        return math.copysign(math.inf, f)


def _shortest(f: float, bits: int) -> str:
    """Shortest decimal text that reads back as *f* at the given width."""
    if bits == 64:
        return repr(f)
    for precision in range(1, 10):
        text = f"{f:.{precision}g}"
        if _to_float32(float(text)) == f:
            return text
    return repr(f)


def _digits(f: float, bits: int) -> tuple[str, str, int]:
    """Sign prefix, shortest significant digits and decimal point position of *f*."""
    sign, digit_tuple, exponent = Decimal(_shortest(f, bits)).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    return ("-" if sign else ""), digits, len(digits) + exponent


def _exponent_form(prefix: str, digits: str, point: int, pad: int) -> str:
    exp10 = point - 1
    mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
    exp_sign = "-" if exp10 < 0 else "+"
    return f"{prefix}{mantissa}e{exp_sign}{abs(exp10):0{pad}d}"


def _fixed_form(prefix: str, digits: str, point: int) -> str:
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{prefix}{digits}{'0' * (point - len(digits))}"
    return f"{prefix}{digits[:point]}.{digits[point:]}"


def format_float(f: float, bits: int = 64) -> str:
    """Format *f* like Go's ``strconv.FormatFloat(f, 'g', -1, bits)``.

    The shortest round-trip digits are laid out in exponent form when the
    decimal exponent is below -4 or at least 6, with a two-digit minimum
    exponent (``1e+36``, ``1e-07``). Infinities and NaN use the YAML
    spellings ``.inf``, ``-.inf`` and ``.nan``.
    """
    if bits == 32:
        f = _to_float32(f)
    if math.isnan(f):
        return ".nan"
    if math.isinf(f):
        return ".inf" if f > 0 else "-.inf"
    if f == 0:
        return "-0" if math.copysign(1.0, f) < 0 else "0"

    prefix, digits, point = _digits(f, bits)
    if point - 1 < -4 or point - 1 >= 6:
        return _exponent_form(prefix, digits, point, 2)
    return _fixed_form(prefix, digits, point)


def format_json_number(f: float) -> str:
    """Format *f* the way Go's ``encoding/json`` writes a float64.

    Magnitudes in [1e-6, 1e21) are written without an exponent, so whole
    values print as integers (``3``, ``100000000000000000000``). Outside
    that range the exponent carries no zero padding (``1e-7``, ``1e+21``).
    Infinities and NaN raise ``ValueError``.
    """
    if math.isnan(f):
        raise ValueError("NaN")
    if math.isinf(f):
        raise ValueError("+Inf" if f > 0 else "-Inf")
    if f == 0:
        return "-0" if math.copysign(1.0, f) < 0 else "0"

    prefix, digits, point = _digits(f, 64)
    if abs(f) < 1e-6 or abs(f) >= 1e21:
        return _exponent_form(prefix, digits, point, 1)
    return _fixed_form(prefix, digits, point)


# ---------------------------------------------------------------------------
# Key normalization
# ---------------------------------------------------------------------------

def normalize_key(key: Value) -> str:
    """Convert a raw YAML mapping key to its canonical JSON string.

    Strings pass through, integers become decimal, floats use the 32-bit
    formatting the YAML emitter uses for keys, booleans become
    ``"true"``/``"false"``. Anything else raises
    ``UnsupportedKeyTypeError``.
    """
    if isinstance(key, VText):
        return key.value
    if isinstance(key, (VInt, VUint)):
        return str(key.value)
    if isinstance(key, VFloat):
        return format_float(key.value, 32)
    if isinstance(key, VBool):
        return "true" if key.value else "false"
    raise UnsupportedKeyTypeError(
        f"unsupported map key of type: {type(key).__name__}, key: {key!r}"
    )
