from fractions import Fraction

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from mod_p import ModP
from perfection import MonoidPerfection, Perfection
from ring_core import (
    CharacteristicError,
    CompatibilityError,
    NotPerfectError,
    PerfectoidInputError,
    PrecisionConfig,
    RingHom,
    ZModRing,
)
from valued_integers import PerfectoidIntegers

from strategies import digit_terms


def test_requires_prime_and_characteristic(config):
    with pytest.raises(PerfectoidInputError):
        Perfection(ZModRing(4), 4, config)
    with pytest.raises(CharacteristicError):
        Perfection(ZModRing(9), 3, config)
    with pytest.raises(CharacteristicError):
        Perfection(PerfectoidIntegers(3, 3), 3, config)


def test_perfection_of_fp_is_constant_sequences(f3, config):
    perf = Perfection(f3, 3, config)
    x = perf.from_perfect(2)
    assert all(x.coeff(n) == 2 for n in range(10))
    assert perf.is_perfect
    assert perf.one() == 1
    assert perf.from_int(5) == perf.from_perfect(2)


def test_incompatible_sequence_is_rejected(f3, config):
    perf = Perfection(f3, 3, config)
    with pytest.raises(CompatibilityError) as excinfo:
        perf.element(lambda n: n)
    assert excinfo.value.index == 0
    unchecked = perf.element(lambda n: n, validate=False)
    assert perf.first_incompatible_index(unchecked) == 0


def test_from_perfect_needs_a_perfect_base(pre_tilt3):
    with pytest.raises(NotPerfectError):
        pre_tilt3.from_perfect(1)


@given(s=digit_terms(3), t=digit_terms(3))
def test_pth_root_shifts_and_inverts_frobenius(pre_tilt3, s, t):
    O = pre_tilt3.integers
    f = pre_tilt3.from_mod_p(O.from_terms(s)) + pre_tilt3.flat_power(Fraction(1, 3))
    g = pre_tilt3.from_mod_p(O.from_terms(t))
    for n in range(5):
        assert f.pth_root().coeff(n) == f.coeff(n + 1)
    assert f.frobenius().pth_root() == f
    assert f.pth_root().frobenius() == f
    assert (f * g).frobenius() == f.frobenius() * g.frobenius()
    assert (f + g).pth_root() == f.pth_root() + g.pth_root()


def test_iterates(pre_tilt3):
    f = pre_tilt3.flat_power(1)
    assert pre_tilt3.iterate_frobenius(f, 2) == f ** 9
    assert pre_tilt3.iterate_pth_root(f, 2).coeff(0) == f.coeff(2)
    assert pre_tilt3.iterate_frobenius(pre_tilt3.iterate_pth_root(f, 3), 3) == f


def test_coeff_is_a_ring_hom(pre_tilt3):
    O = pre_tilt3.integers
    samples = [pre_tilt3.flat_power(1), pre_tilt3.flat_power(Fraction(1, 3)),
               pre_tilt3.from_mod_p(O.from_terms([(0, 2), (Fraction(2, 3), 1)]))]
    for n in range(3):
        assert pre_tilt3.coeff(n).check_hom_laws(samples) == []
    assert pre_tilt3.pth_root_hom().check_hom_laws(samples) == []
    assert pre_tilt3.frobenius_hom().check_hom_laws(samples) == []


def test_nonvanishing_propagates_forward(pre_tilt3):
    f = pre_tilt3.flat_power(3)
    assert pre_tilt3.first_nonzero_coeff(f) == 2
    assert all(pre_tilt3.coeff_ne_zero_of_le(f, 2, n) for n in range(2, 8))
    with pytest.raises(PerfectoidInputError):
        pre_tilt3.coeff_ne_zero_of_le(f, 1, 4)
    with pytest.raises(PerfectoidInputError):
        pre_tilt3.coeff_ne_zero_of_le(f, 4, 2)


def test_window_is_a_numpy_object_array(pre_tilt3):
    w = pre_tilt3.flat_power(1).window(4)
    assert isinstance(w, np.ndarray) and w.dtype == object
    assert w[0].is_zero() and not w[1].is_zero()


class TestUniversalProperty:
    def test_lift_and_unlift_are_inverse(self, f3, config):
        ident = RingHom.identity(f3)
        lifted = Perfection.lift(ident, 3, config)
        assert lifted(2) == Perfection(f3, 3, config).from_perfect(2)
        assert all(Perfection.unlift(lifted)(x) == x for x in f3.elements())

    def test_lift_of_coeff_zero_is_identity(self, f3, config):
        perf = Perfection(f3, 3, config)
        again = Perfection.lift(perf.coeff(0), 3, config)
        x = perf.from_perfect(1)
        assert again(x) == x

    def test_lift_needs_a_perfect_source(self, tower3, config):
        R = ModP(tower3, 3)
        with pytest.raises(NotPerfectError):
            Perfection.lift(RingHom.identity(R), 3, config)

    def test_map_of_frobenius_is_frobenius(self, pre_tilt3, config):
        R = pre_tilt3.mod_p
        frob = RingHom(R, R, lambda x: x ** 3, name="frob")
        mapped = Perfection.map(frob, 3, config)
        f = pre_tilt3.flat_power(Fraction(1, 3))
        assert mapped(f) == f.frobenius()
        assert mapped.check_hom_laws([f, pre_tilt3.one()]) == []


class TestMonoidPerfection:
    def test_roots_of_p_in_the_tower(self):
        O = PerfectoidIntegers(3, 5)
        M = MonoidPerfection(O.one(), 3, PrecisionConfig(check_depth=5, search_depth=5))
        p_flat = M.element(lambda n: O.prime_root(n))
        assert p_flat.coeff(0) == O(3)
        assert p_flat.pth_root().coeff(0) == O.prime_root(1)
        assert (p_flat * p_flat).coeff(1) == O.prime_root(1) ** 2
        assert p_flat.frobenius().coeff(0) == O(27)
        assert M.one() * p_flat == p_flat

    @given(bad=st.integers(0, 4))
    def test_incompatible_root_tower(self, bad):
        O = PerfectoidIntegers(3, 5)
        M = MonoidPerfection(O.one(), 3, PrecisionConfig(check_depth=5, search_depth=5))
        with pytest.raises(CompatibilityError):
            M.element(lambda n: O.prime_root(n) if n <= bad else O(2))
