"""
================================================================================
PreTilt(O, p) = Perfection(ModP(O, p), p) 及其 ℝ≥0 值赋值

数学：
- f ≠ 0 时取最小的 n 使 coeff_n(f) ≠ 0，val(f) = preVal(coeff_n f)^{p^n}
- 下标无关性：任意 m ≤ n 且 coeff_m(f) ≠ 0 时
      preVal(coeff_m f)^{p^m} = preVal(coeff_n f)^{p^n}
  因为 coeff_m = coeff_n^{p^{n-m}} 且 preVal 在非零幂上乘法
  所以"最小 n"只是规范选择
- 不能直接看坐标 0：ModP 有幂零元，相容序列可以在有限个开头坐标上为零
- val 乘法、超度量、零点只在 0；v(p) ≠ 1 时 PreTilt 是整环
================================================================================
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Any, Optional, Union

import numpy as np

from mod_p import ModP, mul_ne_zero_of_pow_p_ne_zero
from perfection import Perfection, PerfectionElement
from ring_core import (
    DEFAULT_CONFIG,
    PerfectoidInputError,
    PerfectoidPrecisionError,
    PrecisionConfig,
    require_index,
)
from valuation import NNValue, Valuation
from valued_integers import PerfectoidIntegers, ValuedIntegerRing, _as_tower_exponent

_logger = logging.getLogger(__name__)


__all__ = [
    "PreTilt",
    "PreTiltValuation",
]


class PreTiltValuation(Valuation):
    """PreTilt 上的赋值 val = valAux"""

    def __init__(self, pre_tilt: "PreTilt"):
        super().__init__(pre_tilt, pre_tilt.integers.prime)

    def value(self, f: PerfectionElement) -> NNValue:
        return self.domain.val_aux(f)


class PreTilt(Perfection):
    """
    PreTilt(O, p)：O/p 的完美化

    v(p) = 1 时 O/p 是零环，PreTilt 也是零环：仍可构造，但不是整环。
    """

    def __init__(self, integers: ValuedIntegerRing, p: int,
                 config: PrecisionConfig = DEFAULT_CONFIG):
        self.integers = integers
        self.mod_p = ModP(integers, p)
        super().__init__(self.mod_p, p, config)
        self.val = PreTiltValuation(self)

    # ── 构造 ────────────────────────────────────────────────────────────────

    def from_mod_p(self, x: Any) -> PerfectionElement:
        """x_0 = x，之后逐层取 ModP 中选定的 p 次根"""
        return self.from_root_tower(x, self.mod_p.chosen_pth_root)

    def flat_power(self, a: Union[int, Fraction]) -> PerfectionElement:
        """
        (p^♭)^a = (p^a, p^{a/p}, p^{a/p^2}, ...) mod p

        需要 O 含有 p 的全部 p 幂次根（PerfectoidIntegers 且剩余特征为 p）。
        a >= 1 时开头若干坐标为零，元素却非零。
        """
        if not isinstance(self.integers, PerfectoidIntegers) or self.integers.prime != self.p:
            raise PerfectoidInputError(f"{self.integers!r} 不含 {self.p} 的 p 幂次根")
        a = _as_tower_exponent(a, self.p)
        O = self.integers
        return self.element(lambda n: self.mod_p(O.monomial(a / self.p ** n)))

    # ── 赋值 ────────────────────────────────────────────────────────────────

    def first_nonzero_index(self, f: Any) -> Optional[int]:
        n = self.first_nonzero_coeff(f)
        if n is None:
            _logger.debug("no nonzero coefficient below search_depth=%d; treating as zero",
                          self.config.search_depth)
        return n

    def val_at(self, f: Any, n: int) -> NNValue:
        """preVal(coeff_n f)^{p^n}"""
        require_index(n)
        f = self(f)
        return self.mod_p.pre_val(f.coeff(n)) ** (self.p ** n)

    def val_aux(self, f: Any) -> NNValue:
        n = self.first_nonzero_index(f)
        if n is None:
            return NNValue.zero(self.integers.prime)
        return self.val_at(f, n)

    def check_val_aux_eq(self, f: Any, m: int, n: int) -> bool:
        """m ≤ n 且 coeff_m(f) ≠ 0 时 val_at(f, m) = val_at(f, n)"""
        f = self(f)
        if not self.coeff_ne_zero_of_le(f, m, n):
            raise PerfectoidPrecisionError(f"coeff_{m} ≠ 0 但 coeff_{n} = 0：序列不相容")
        return self.val_at(f, m) == self.val_at(f, n)

    def check_val_mul(self, f: Any, g: Any) -> bool:
        """
        val(fg) = val(f)·val(g)

        在 k = max(m, n) + 1 处对齐下标：coeff_k(f)^p = coeff_{k-1}(f) ≠ 0，
        g 同理，于是 coeff_k(fg) = coeff_k(f)·coeff_k(g) ≠ 0。
        """
        f, g = self(f), self(g)
        m, n = self.first_nonzero_index(f), self.first_nonzero_index(g)
        if m is None or n is None:
            return self.val_aux(f * g).is_zero()
        k = max(m, n) + 1
        if k >= self.config.search_depth:
            raise PerfectoidPrecisionError(f"对齐下标 {k} 超出 search_depth={self.config.search_depth}")
        if not mul_ne_zero_of_pow_p_ne_zero(f.coeff(k), g.coeff(k)):
            return False
        fg = f * g
        aligned = self.val_at(fg, k) == self.val_at(f, k) * self.val_at(g, k)
        return aligned and self.val_aux(fg) == self.val_aux(f) * self.val_aux(g)

    def check_val_add(self, f: Any, g: Any) -> bool:
        f, g = self(f), self(g)
        return self.val_aux(f + g) <= max(self.val_aux(f), self.val_aux(g))

    def valuation_profile(self, f: Any, depth: Optional[int] = None) -> np.ndarray:
        """逐坐标的 preVal(coeff_n f)，numpy object 数组"""
        depth = self.config.check_depth if depth is None else require_index(depth, name="depth")
        f = self(f)
        out = np.empty(depth, dtype=object)
        for n in range(depth):
            out[n] = self.mod_p.pre_val(f.coeff(n))
        return out

    # ── 整环性 ──────────────────────────────────────────────────────────────

    def is_domain(self) -> bool:
        """v(p) ≠ 1 ⟺ p 不是 O 的单位 ⟺ ModP 非零，val 无零因子"""
        return not self.mod_p.v_p.is_one()

    def __repr__(self) -> str:
        return f"PreTilt({self.integers!r}, {self.p})"
