#!/usr/bin/env python3
# persistence.py — multiplicative digital persistence on gmpy2 integers
from __future__ import annotations
from typing import List, Optional, Tuple

import gmpy2
from gmpy2 import mpz

# ---------- digit histogram ----------

DIGIT_CHARS = "0123456789"

def digit_histogram(n) -> Optional[List[int]]:
    """Count of each decimal digit of n, or None as soon as a 0 digit shows up."""
    s = mpz(n).digits(10)
    if "0" in s:
        return None
    return [s.count(ch) for ch in DIGIT_CHARS]

def prime_exponents(hist: List[int]) -> Tuple[int, int, int, int]:
    """Regroup a digit histogram into exponents of 2, 3, 5 and 7."""
    e2 = hist[2] + 2*hist[4] + hist[6] + 3*hist[8]
    e3 = hist[3] + hist[6] + 2*hist[9]
    return e2, e3, hist[5], hist[7]

def from_exponents(e2: int, e3: int, e5: int, e7: int) -> mpz:
    out = mpz(1)
    for base, e in ((2, e2), (3, e3), (5, e5), (7, e7)):
        if e:
            out *= mpz(base) ** e
    return out

# ---------- digit product / persistence ----------

def digit_product(n) -> mpz:
    """Product of the decimal digits of n (0 if any digit is 0)."""
    if n < 0:
        raise ValueError("digit product is defined for non-negative integers only")
    hist = digit_histogram(n)
    if hist is None:
        return mpz(0)
    return from_exponents(*prime_exponents(hist))

def persistence(n) -> int:
    """Number of digit-product steps needed to bring n below 10."""
    if n < 0:
        raise ValueError("persistence is defined for non-negative integers only")
    value = mpz(n)
    count = 0
    while value >= 10:
        value = digit_product(value)
        count += 1
    return count

def gmpy2_version_str() -> str:
    v = getattr(gmpy2, "__version__", None)
    if v:
        return v
    vfun = getattr(gmpy2, "version", None)
    return vfun() if callable(vfun) else "unknown"
