"""Hypothesis strategies shared by the test modules."""

from __future__ import annotations

from fractions import Fraction

from hypothesis import strategies as st

PRIMES = [2, 3, 5]


def tower_exponents(p: int, max_level: int = 3, below: int = 1):
    """Exponents a in Z[1/p] with 0 <= a < below and denominator at most p^max_level."""
    return st.integers(0, max_level).flatmap(
        lambda k: st.integers(0, below * p ** k - 1).map(lambda a: Fraction(a, p ** k))
    )


def digit_terms(p: int, max_size: int = 3, below: int = 1):
    """Term lists [(a, d)] accepted by PerfectoidIntegers.from_terms."""
    return st.lists(st.tuples(tower_exponents(p, below=below), st.integers(1, p - 1)),
                    max_size=max_size)


def _nonzero_mod_p(p: int):
    # Exponents below 1 receive no carries, so the class is nonzero
    # exactly when some exponent keeps a digit sum prime to p.
    def check(terms) -> bool:
        totals = {}
        for a, d in terms:
            totals[a] = totals.get(a, 0) + d
        return any(c % p for c in totals.values())
    return check


def nonzero_digit_terms(p: int, max_size: int = 3):
    return digit_terms(p, max_size=max_size).filter(_nonzero_mod_p(p))
