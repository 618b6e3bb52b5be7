from fractions import Fraction

import pytest
from hypothesis import given

from ring_core import NotADomainError, PrecisionConfig
from tilt import Tilt
from valued_integers import PadicIntegers

from strategies import tower_exponents


@pytest.fixture
def tilt3(tower3, config):
    return Tilt(tower3, 3, config)


def test_unit_p_has_no_fraction_field(z5, config):
    with pytest.raises(NotADomainError):
        Tilt(z5, 3, config)
    assert Tilt(PadicIntegers(5, 4), 5, config).has_char(5)


def test_characteristic_is_not_inferred(tilt3):
    with pytest.raises(NotImplementedError):
        tilt3.characteristic
    assert tilt3.has_char(3)
    assert not tilt3.has_char(5)
    assert tilt3.from_int(3) == 0
    assert tilt3.from_int(4) == tilt3.one()


def test_inverse_of_p_flat(tilt3):
    p_flat = tilt3(tilt3.pre_tilt.flat_power(1))
    assert p_flat * p_flat.inverse() == tilt3.one()
    assert 1 / p_flat == p_flat.inverse()
    assert p_flat / p_flat == 1


def test_fractions_compare_by_cross_multiplication(tilt3):
    A = tilt3.pre_tilt
    third = Fraction(1, 3)
    assert tilt3.fraction(A.flat_power(1), A.flat_power(third)) == tilt3(A.flat_power(2 * third))
    assert tilt3.fraction(A.flat_power(2), A.flat_power(1)) == tilt3.fraction(A.flat_power(1))
    assert tilt3.fraction(A.flat_power(1), A.flat_power(2)) != tilt3.one()


@given(a=tower_exponents(3, below=2), b=tower_exponents(3, below=2),
       c=tower_exponents(3, below=2), d=tower_exponents(3, below=2))
def test_field_operations(tilt3, a, b, c, d):
    A = tilt3.pre_tilt
    x = tilt3.fraction(A.flat_power(a), A.flat_power(b))
    y = tilt3.fraction(A.flat_power(c), A.flat_power(d))
    assert (x / y) * y == x
    assert x + y - y == x
    assert x * (y + 1) == x * y + x
    assert x * x.inverse() == 1


def test_units_from_residues(tilt3):
    A = tilt3.pre_tilt
    O = A.integers
    u = tilt3(A.from_mod_p(O.from_terms([(0, 1), (Fraction(1, 3), 1)])))
    assert u * u.inverse() == tilt3.one()
    assert (u + tilt3(A.flat_power(1))) / u != tilt3.one()


class TestZeroDivision:
    def test_zero_denominator(self, tilt3):
        A = tilt3.pre_tilt
        with pytest.raises(ZeroDivisionError):
            tilt3.fraction(A.one(), A.zero())

    def test_zero_has_no_inverse(self, tilt3):
        zero = tilt3.zero()
        assert zero.is_zero()
        with pytest.raises(ZeroDivisionError):
            zero.inverse()
        with pytest.raises(ZeroDivisionError):
            tilt3.one() / zero


def test_algebra_map_is_an_injective_ring_hom(tilt3):
    A = tilt3.pre_tilt
    samples = [A.flat_power(1), A.flat_power(Fraction(1, 3)), A.one()]
    assert tilt3.algebra_map.check_hom_laws(samples) == []
    assert tilt3.algebra_map(samples[0]) != tilt3.algebra_map(samples[1])
    assert tilt3.algebra_map(samples[0]).den == A.one()


def test_elements_are_unhashable(tilt3):
    with pytest.raises(TypeError):
        hash(tilt3.one())


def test_deep_elements_are_nonzero_and_invertible(tower3):
    K = Tilt(tower3, 3, PrecisionConfig())
    x = K(K.pre_tilt.flat_power(3 ** 8))
    assert not x.is_zero()
    assert x != K.zero()
    assert x * x.inverse() == K.one()
    assert x != K(K.pre_tilt.flat_power(2 * 3 ** 8))
    with pytest.raises(ZeroDivisionError):
        K(K.pre_tilt.flat_power(3 ** 40)).inverse()
