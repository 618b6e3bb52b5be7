"""
===========================================================
ModP(O, p) = O / pO 与诱导的 preVal
===========================================================
数学基础:
  - v 是赋值域 K 上的 ℝ≥0 值赋值，O 是其整数环（v ≤ 1）
  - preVal([x]) = v(x)（任取代表元），preVal(0) = 0
良定义性:
  x' = x + p·r 时 v(p·r) ≤ v(p)；若 [x] ≠ 0 则 v(x) > v(p)，
  超度量不等式给出 v(x') = v(x)
性质:
  - preVal(xy) = preVal(x)·preVal(y)   (xy ≠ 0)
  - preVal(x + y) ≤ max(preVal(x), preVal(y))
  - v(p) < preVal(x) ⟺ x ≠ 0
  - x^p ≠ 0, y^p ≠ 0 ⟹ xy ≠ 0
===========================================================
"""

from __future__ import annotations

import logging
from typing import Any, Tuple

from ring_core import (
    CommRing,
    PerfectoidInputError,
    RingElement,
    RingHom,
    is_prime,
)
from valuation import NNValue
from valued_integers import ValuedIntegerRing

_logger = logging.getLogger(__name__)


__all__ = [
    "ModP",
    "ModPElement",
    "mul_ne_zero_of_pow_p_ne_zero",
]


class ModPElement(RingElement):
    """O/pO 中的剩余类，内部只保存规范代表元"""

    def __init__(self, ring: "ModP", rep: RingElement):
        self._ring = ring
        self._rep = ring.integers.reduce_mod_p(rep, ring.p)

    @property
    def ring(self) -> "ModP":
        return self._ring

    @property
    def representative(self) -> RingElement:
        return self._rep

    def __add__(self, other) -> "ModPElement":
        other = self._coerce(other)
        return ModPElement(self._ring, self._rep + other._rep)

    def __mul__(self, other) -> "ModPElement":
        other = self._coerce(other)
        return ModPElement(self._ring, self._rep * other._rep)

    def __neg__(self) -> "ModPElement":
        return ModPElement(self._ring, -self._rep)

    def __eq__(self, other) -> bool:
        if isinstance(other, int) and not isinstance(other, bool):
            other = self._ring.from_int(other)
        return (isinstance(other, ModPElement) and self._ring == other._ring
                and self._rep == other._rep)

    def __hash__(self) -> int:
        return hash((self._ring._key(), self._rep))

    def is_zero(self) -> bool:
        return self._rep.is_zero()

    def __repr__(self) -> str:
        return f"[{self._rep!r}]"


class ModP(CommRing):
    """
    O/pO，O 是赋值域的整数环

    p 不是 O 中的单位时特征为 p；p 是单位 (v(p) = 1) 时商环是零环（特征 1）。
    """

    def __init__(self, integers: ValuedIntegerRing, p: int):
        if not isinstance(integers, ValuedIntegerRing):
            raise PerfectoidInputError(f"ModP 需要赋值整数环, got {type(integers).__name__}")
        if not is_prime(p):
            raise PerfectoidInputError(f"ModP 需要素数 p，但收到 p={p!r}")
        self.integers = integers
        self.p = p

    def _key(self) -> Tuple:
        return ("ModP", self.integers._key(), self.p)

    @property
    def is_trivial(self) -> bool:
        return self.integers.is_unit_int(self.p)

    @property
    def characteristic(self) -> int:
        return 1 if self.is_trivial else self.p

    def zero(self) -> ModPElement:
        return ModPElement(self, self.integers.zero())

    def one(self) -> ModPElement:
        return ModPElement(self, self.integers.one())

    def from_int(self, n: int) -> ModPElement:
        return ModPElement(self, self.integers.from_int(n))

    def __call__(self, value: Any) -> ModPElement:
        # O 的元素经商映射进入 O/pO
        if isinstance(value, RingElement) and value.ring == self.integers:
            return ModPElement(self, value)
        return super().__call__(value)

    @property
    def mk(self) -> RingHom:
        """商映射 O → O/pO"""
        return RingHom(self.integers, self, lambda r: ModPElement(self, r), name="mk")

    # ── preVal ──────────────────────────────────────────────────────────────

    @property
    def v_p(self) -> NNValue:
        """v(p)"""
        return self.integers.valuation(self.integers.from_int(self.p))

    def pre_val(self, x: Any) -> NNValue:
        x = self(x)
        if x.is_zero():
            return NNValue.zero(self.integers.prime)
        return self.integers.valuation(x.representative)

    def pre_val_of_lift(self, r: RingElement) -> NNValue:
        """preVal(mk r)：类非零时等于 v(r)（与所选代表元无关）"""
        r = self.integers(r)
        if self(r).is_zero():
            return NNValue.zero(self.integers.prime)
        return self.integers.valuation(r)

    def check_representative_independence(self, r1: RingElement, r2: RingElement) -> bool:
        """r1 ≡ r2 (mod p) 且类非零时 v(r1) = v(r2)"""
        r1, r2 = self.integers(r1), self.integers(r2)
        if self(r1) != self(r2):
            raise PerfectoidInputError(f"{r1!r} 与 {r2!r} 不在同一剩余类")
        if self(r1).is_zero():
            return True
        v = self.integers.valuation
        return v(r1) == v(r2)

    def chosen_pth_root(self, x: Any) -> ModPElement:
        """选定的 p 次根（O/p 上 Frobenius 满射但通常不单射）"""
        x = self(x)
        return ModPElement(self, self.integers.mod_p_pth_root(x.representative, self.p))

    def __repr__(self) -> str:
        return f"ModP({self.integers!r}, {self.p})"


def mul_ne_zero_of_pow_p_ne_zero(x: ModPElement, y: ModPElement) -> bool:
    """
    x^p ≠ 0 且 y^p ≠ 0 ⟹ xy ≠ 0

    v(x)^p > v(p), v(y)^p > v(p) ⟹ v(xy)^p > v(p)^2 ≥ v(p)^p，所以 v(xy) > v(p)。
    前提不成立时抛异常；返回结论在此实例上是否成立。
    """
    ring = x.ring
    y = ring(y)
    p = ring.p
    if (x ** p).is_zero() or (y ** p).is_zero():
        raise PerfectoidInputError("前提不成立: x^p 或 y^p 为零")
    holds = not (x * y).is_zero()
    if not holds:
        _logger.warning("x^p, y^p ≠ 0 but x·y = 0 for x=%r, y=%r", x, y)
    return holds
