"""
Value converters for options and positionals.

Every converter takes the raw token text and returns a typed value, raising
ValueError when the text cannot be converted. Any callable with that contract
can be passed as ``type=`` to Option or Positional; the ones below cover the
common cases:

- string: the text itself.
- integer / number: int and float.
- binary: integer with an optional 1024-based unit suffix ("2k" -> 2048).
- metric: integer with an optional 1000-based unit suffix ("150G" -> 150000000000).
- duration: sequence of decimal numbers with units ("1h30m", "300ms") -> timedelta.

Unit suffixes are single letters, case-insensitive: k, m, g, t, p, e, z, y.
"""
import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation

_UNITS = "kmgtpezy"

_QUANTITY = re.compile(r"(?P<body>[+-]?(?:\d+(?:\.\d*)?|\.\d+))(?P<unit>[^\d.]*)")

_DURATION = re.compile(r"(?P<body>\d+(?:\.\d*)?|\.\d+)(?P<unit>ns|us|µs|μs|ms|s|m|h)")

# microseconds per unit
_SPANS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1000),
    "s": Decimal(1000000),
    "m": Decimal(60000000),
    "h": Decimal(3600000000),
}


def string(text, /):
    return text


def integer(text, /):
    return int(text)


def number(text, /):
    return float(text)


def _scaled(text, base, /):
    if not (match := _QUANTITY.fullmatch(text)):
        raise ValueError("not a number: %r" % text)

    body, unit = match["body"], match["unit"]
    if not unit:
        power = 0
    elif len(unit) == 1 and unit.lower() in _UNITS:
        power = _UNITS.index(unit.lower()) + 1
    else:
        raise ValueError("unknown unit suffix %r" % unit)

    try:
        value = Decimal(body) * base ** power
    except InvalidOperation:
        raise ValueError("not a number: %r" % text) from None
    if value != value.to_integral_value():
        raise ValueError("not a whole quantity: %r" % text)
    return int(value)


def binary(text, /):
    """
    Convert an integer with an optional 1024-based unit suffix.

        >>> binary("2k")
        2048
        >>> binary("1.5M")
        1572864
    """
    return _scaled(text, 1024)


def metric(text, /):
    """
    Convert an integer with an optional 1000-based unit suffix.

        >>> metric("150G")
        150000000000
    """
    return _scaled(text, 1000)


def duration(text, /):
    """
    Convert a duration such as "5m", "1h30m" or "-1.5s" into a timedelta.

    A bare "0" is accepted; every other number needs a unit
    (ns, us, µs, ms, s, m, h).
    """
    sign, body = (text[0], text[1:]) if text[:1] in ("+", "-") else ("", text)
    if body == "0":
        return timedelta(0)

    total = Decimal(0)
    position = 0
    for match in _DURATION.finditer(body):
        if match.start() != position:
            break
        total += Decimal(match["body"]) * _SPANS[match["unit"]]
        position = match.end()

    if not body or position != len(body):
        raise ValueError("invalid duration: %r" % text)
    return timedelta(microseconds=float(-total if sign == "-" else total))


__all__ = (
    "string",
    "integer",
    "number",
    "binary",
    "metric",
    "duration",
)
