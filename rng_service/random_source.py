"""Cryptographically secure random values backed by the OS CSPRNG."""
import secrets

from .errors import EntropyError

# Width of the IEEE-754 double mantissa (including the implicit bit)
MANTISSA_BITS = 53
_SCALE = 1 << MANTISSA_BITS

DEBUG_SUFFIX_RANGE = 9


def next_unit_float() -> float:
    """
    Return a float uniformly distributed in [0, 1).

    A 53-bit integer is drawn and scaled by 2**-53, so every representable
    step of the result is equally likely.

    Raises:
        EntropyError: If the OS entropy source fails
    """
    try:
        bits = secrets.randbits(MANTISSA_BITS)
    except OSError as exc:
        raise EntropyError(str(exc)) from exc
    return bits / _SCALE


def debug_suffix() -> int:
    """Return a digit in 0..8 used to label anonymous callers."""
    try:
        return secrets.randbelow(DEBUG_SUFFIX_RANGE)
    except OSError as exc:
        raise EntropyError(str(exc)) from exc
