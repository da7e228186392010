"""
Little Man Plus — accumulator arithmetic

Python integers are unbounded, the machine's are not: every result is
folded back into the signed 64-bit range with two's-complement wraparound,
so ``INT64_MAX + 1 == INT64_MIN`` just like native i64 arithmetic.
"""

_MASK64 = (1 << 64) - 1
_SIGN64 = 1 << 63


def wrap64(value: int) -> int:
    """Fold an arbitrary integer into signed 64-bit range."""
    value &= _MASK64
    if value & _SIGN64:
        value -= 1 << 64
    return value


def add(a: int, b: int) -> int:
    return wrap64(a + b)


def sub(a: int, b: int) -> int:
    return wrap64(a - b)


# In-range inputs give in-range results; wrap64 guards raw inputs.

def bw_not(a: int) -> int:
    return wrap64(~a)


def bw_and(a: int, b: int) -> int:
    return wrap64(a & b)


def bw_or(a: int, b: int) -> int:
    return wrap64(a | b)


def bw_xor(a: int, b: int) -> int:
    return wrap64(a ^ b)
