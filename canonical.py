#!/usr/bin/env python3
# canonical.py — canonical digit forms <prefix>555777888999 and digit buckets
#
# Any multiset of digits can be re-grouped by prime factors into a number made
# of 5s, 7s, 8s and 9s behind one of six short prefixes, and the smallest number
# with a given digit product always has that shape (Matt Parker's reduction,
# https://www.youtube.com/watch?v=Wim9WJeDTHQ). Enumerating those forms per
# digit length therefore covers every reachable digit product.
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from gmpy2 import mpz

# ---------- prefixes ----------

@dataclass(frozen=True)
class Prefix:
    text: str
    digits: int
    product: int

# Smallest to largest as leading digits: "26" goes first because any other
# two-digit start is 2 followed by at least a 7.
PREFIXES: Tuple[Prefix, ...] = (
    Prefix("26", 2, 12),
    Prefix("2", 1, 2),
    Prefix("3", 1, 3),
    Prefix("4", 1, 4),
    Prefix("6", 1, 6),
    Prefix("", 0, 1),
)

# ---------- candidates ----------

@dataclass(frozen=True)
class Candidate:
    digits: int
    prefix: Prefix
    fives: int = 0
    sevens: int = 0
    eights: int = 0
    nines: int = 0

    def value(self) -> mpz:
        """Digit product of the candidate, i.e. its first step, in factored form."""
        out = mpz(self.prefix.product)
        for base, e in ((5, self.fives), (7, self.sevens), (8, self.eights), (9, self.nines)):
            if e:
                out *= mpz(base) ** e
        return out

    def text(self) -> str:
        return (self.prefix.text + "5"*self.fives + "7"*self.sevens
                + "8"*self.eights + "9"*self.nines)

def candidates(digits: int) -> Iterator[Candidate]:
    """All canonical forms with exactly `digits` digits."""
    for prefix in PREFIXES:
        if digits < prefix.digits:
            continue
        rest = digits - prefix.digits

        # A 5 next to any factor of 2 makes the product a multiple of 10, so
        # forms with 5s only exist behind odd prefixes and never carry 8s.
        if prefix.product & 1:
            for num79 in range(rest):  # strict: at least one 5
                for nines in range(num79 + 1):
                    yield Candidate(digits, prefix, fives=rest - num79,
                                    sevens=num79 - nines, nines=nines)

        for num89 in range(rest + 1):
            for nines in range(num89 + 1):
                yield Candidate(digits, prefix, sevens=rest - num89,
                                eights=num89 - nines, nines=nines)

def count_candidates(digits: int) -> int:
    """Closed form of len(list(candidates(digits)))."""
    total = 0
    for prefix in PREFIXES:
        if digits < prefix.digits:
            continue
        rest = digits - prefix.digits
        if prefix.product & 1:
            total += rest*(rest + 1)//2
        total += (rest + 1)*(rest + 2)//2
    return total

# ---------- digit buckets ----------

DIGIT_BUCKET = 100

def bucket_index(digits: int, width: int = DIGIT_BUCKET) -> int:
    return (digits - 1) // width

def bucket_upper(index: int, max_digits: int, width: int = DIGIT_BUCKET) -> int:
    return min((index + 1) * width, max_digits)

def initial_buckets(max_digits: int, width: int = DIGIT_BUCKET) -> List[int]:
    """Digit lengths left per bucket; bucket 0 skips length 1, which is never searched."""
    if max_digits < 2:
        raise ValueError("max_digits must be >= 2")
    if width < 1:
        raise ValueError("bucket width must be >= 1")
    left = [min(width, max_digits - lo) for lo in range(0, max_digits, width)]
    left[0] -= 1
    return left
