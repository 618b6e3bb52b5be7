from fractions import Fraction

import numpy as np
import pytest
from hypothesis import given

from pre_tilt import PreTilt
from ring_core import PerfectoidInputError, PerfectoidPrecisionError, PrecisionConfig
from valuation import NNValue

from strategies import nonzero_digit_terms, tower_exponents


def test_five_adic_constant_sequence(z5, config):
    A = PreTilt(z5, 5, config)
    ones = A.element(lambda n: 1)
    assert ones.coeff(0) == A.mod_p.one()
    assert A.val(ones) == 1
    assert A.is_domain()


def test_flat_power_is_nonzero_with_vanishing_head(pre_tilt3):
    p_flat = pre_tilt3.flat_power(1)
    assert p_flat.coeff(0).is_zero()
    assert not p_flat.is_zero()
    assert pre_tilt3.first_nonzero_index(p_flat) == 1
    assert pre_tilt3.val(p_flat) == pre_tilt3.mod_p.v_p


@given(a=tower_exponents(3, below=3), b=tower_exponents(3, below=3))
def test_value_of_flat_powers(pre_tilt3, a, b):
    f, g = pre_tilt3.flat_power(a), pre_tilt3.flat_power(b)
    assert pre_tilt3.val(f) == NNValue(3, a)
    assert f * g == pre_tilt3.flat_power(a + b)
    assert pre_tilt3.check_val_mul(f, g)
    assert pre_tilt3.check_val_add(f, g)


@given(s=nonzero_digit_terms(3), a=tower_exponents(3, below=2))
def test_multiplicativity_against_lifted_residues(pre_tilt3, s, a):
    O = pre_tilt3.integers
    x = pre_tilt3.from_mod_p(O.from_terms(s))
    f = pre_tilt3.flat_power(a)
    assert pre_tilt3.val(x) == pre_tilt3.mod_p.pre_val(x.coeff(0))
    assert pre_tilt3.check_val_mul(x, f)
    assert pre_tilt3.val(x * f) == pre_tilt3.val(x) * NNValue(3, a)
    assert pre_tilt3.check_val_add(x, f)


def test_valuation_axioms(pre_tilt3):
    O = pre_tilt3.integers
    third = Fraction(1, 3)
    samples = [pre_tilt3.one(), pre_tilt3.flat_power(1), pre_tilt3.flat_power(third),
               pre_tilt3.from_mod_p(O.from_terms([(0, 1), (third, 1)])),
               pre_tilt3.flat_power(third) + pre_tilt3.flat_power(2)]
    report = pre_tilt3.val.check_axioms(samples)
    assert report.is_valid, report
    assert report.checked == len(samples)


def test_value_does_not_depend_on_the_index(pre_tilt3, config):
    p_flat = pre_tilt3.flat_power(1)
    assert all(pre_tilt3.check_val_aux_eq(p_flat, 1, n) for n in range(1, config.check_depth))
    assert pre_tilt3.val_at(p_flat, 4) == NNValue(3, 1)
    with pytest.raises(PerfectoidInputError):
        pre_tilt3.check_val_aux_eq(p_flat, 0, 3)


def test_valuation_profile(pre_tilt3, config):
    profile = pre_tilt3.valuation_profile(pre_tilt3.flat_power(1), 3)
    assert isinstance(profile, np.ndarray) and profile.dtype == object
    assert list(profile) == [NNValue.zero(3), NNValue(3, Fraction(1, 3)), NNValue(3, Fraction(1, 9))]
    assert pre_tilt3.valuation_profile(pre_tilt3.one()).shape == (config.check_depth,)


def test_flat_power_needs_the_root_tower(pre_tilt3, z5, config):
    with pytest.raises(PerfectoidInputError):
        PreTilt(z5, 5, config).flat_power(1)
    with pytest.raises(PerfectoidInputError):
        pre_tilt3.flat_power(Fraction(1, 2))


class TestZeroRing:
    def test_unit_p_gives_the_zero_ring(self, z5, config):
        A = PreTilt(z5, 3, config)
        assert not A.is_domain()
        assert A.one() == A.zero()
        assert A.val(A.one()).is_zero()


class TestTruncation:
    def test_search_depth_bounds_the_index_search(self, tower3):
        A = PreTilt(tower3, 3, PrecisionConfig(check_depth=2, search_depth=3))
        deep = A.flat_power(9)
        assert A.first_nonzero_index(deep) is None
        assert A.val(deep).is_zero()
        assert A.first_nonzero_coeff(deep, bound=5) == 3

    def test_alignment_past_search_depth(self, tower3):
        A = PreTilt(tower3, 3, PrecisionConfig(check_depth=2, search_depth=3))
        with pytest.raises(PerfectoidPrecisionError):
            A.check_val_mul(A.flat_power(1), A.flat_power(4))


class TestDeepElements:
    def test_zero_test_agrees_with_val(self, tower3):
        A = PreTilt(tower3, 3, PrecisionConfig())
        f = A.flat_power(3 ** 8)
        assert A.first_nonzero_index(f) == 9
        assert not f.is_zero()
        assert f != A.zero()
        assert A.val(f) == NNValue(3, 3 ** 8)
        assert A.val.check_axioms([f]).is_valid
        assert A.flat_power(3 ** 8) != A.flat_power(2 * 3 ** 8)

    def test_beyond_search_depth_is_zero_everywhere(self, tower3):
        A = PreTilt(tower3, 3, PrecisionConfig())
        beyond = A.flat_power(3 ** 40)
        assert beyond.is_zero()
        assert beyond == A.zero()
        assert A.val(beyond).is_zero()


class TestPrecisionIdentity:
    def test_rings_with_different_configs_are_distinct(self, tower3):
        coarse = PreTilt(tower3, 3, PrecisionConfig(check_depth=2, search_depth=3))
        fine = PreTilt(tower3, 3, PrecisionConfig())
        assert coarse != fine
        assert fine == PreTilt(tower3, 3, PrecisionConfig())
        f = fine.flat_power(9)
        assert fine.val(f) == NNValue(3, 9)
        with pytest.raises(PerfectoidInputError):
            coarse(f)
        with pytest.raises(PerfectoidInputError):
            coarse.val(f)
