"""
================================================================================
Tilt(O, p) = Frac(PreTilt(O, p))

- 只有 PreTilt 是整环 (v(p) ≠ 1) 时分式域才存在；否则构造直接抛 NotADomainError
- 分母为零 -> ZeroDivisionError，绝不静默返回默认值
- Tilt 上不定义赋值，也不给出 characteristic（留待后续）；p·1 = 0 可用 has_char(p) 检查
================================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from perfection import PerfectionElement
from pre_tilt import PreTilt
from ring_core import (
    DEFAULT_CONFIG,
    CommRing,
    NotADomainError,
    PrecisionConfig,
    RingElement,
    RingHom,
)
from valued_integers import ValuedIntegerRing

_logger = logging.getLogger(__name__)


__all__ = [
    "Tilt",
    "TiltElement",
]


class TiltElement(RingElement):
    """分式 num / den，den ≠ 0"""

    def __init__(self, ring: "Tilt", num: PerfectionElement, den: PerfectionElement):
        pre_tilt = ring.pre_tilt
        num, den = pre_tilt(num), pre_tilt(den)
        if den.is_zero():
            raise ZeroDivisionError("Tilt 中分母为零")
        self._ring = ring
        self.num = num
        self.den = den

    @property
    def ring(self) -> "Tilt":
        return self._ring

    def __add__(self, other) -> "TiltElement":
        other = self._coerce(other)
        return TiltElement(self._ring,
                           self.num * other.den + other.num * self.den,
                           self.den * other.den)

    def __mul__(self, other) -> "TiltElement":
        other = self._coerce(other)
        return TiltElement(self._ring, self.num * other.num, self.den * other.den)

    def __neg__(self) -> "TiltElement":
        return TiltElement(self._ring, -self.num, self.den)

    def inverse(self) -> "TiltElement":
        if self.is_zero():
            raise ZeroDivisionError("Tilt 中零元素没有乘法逆")
        return TiltElement(self._ring, self.den, self.num)

    def __truediv__(self, other) -> "TiltElement":
        return self * self._coerce(other).inverse()

    def __rtruediv__(self, other) -> "TiltElement":
        return self._coerce(other) * self.inverse()

    def __eq__(self, other) -> bool:
        if isinstance(other, int) and not isinstance(other, bool):
            other = self._ring.from_int(other)
        if not isinstance(other, TiltElement) or other._ring != self._ring:
            return False
        # a/b = c/d ⟺ ad = cb（整环）
        return self.num * other.den == other.num * self.den

    __hash__ = None

    def is_zero(self) -> bool:
        return self.num.is_zero()

    def __repr__(self) -> str:
        return f"{self.num!r} / {self.den!r}"


class Tilt(CommRing):
    """
    PreTilt(O, p) 的分式域

    Tilt 由 PreTilt 的整环性决定，而整环性等价于 v(p) ≠ 1。
    """

    def __init__(self, integers: ValuedIntegerRing, p: int,
                 config: PrecisionConfig = DEFAULT_CONFIG):
        pre_tilt = PreTilt(integers, p, config)
        if not pre_tilt.is_domain():
            raise NotADomainError(
                f"v({p}) = 1：{p} 是 {integers!r} 的单位，PreTilt 是零环，没有分式域"
            )
        self.pre_tilt = pre_tilt
        self.p = p
        _logger.debug("Tilt over %r constructed, v(p)=%r", integers, pre_tilt.mod_p.v_p)

    def _key(self) -> Tuple:
        return ("Tilt",) + self.pre_tilt._key()

    @property
    def characteristic(self) -> int:
        """未定义：Tilt 的特征不从 PreTilt 推出；有限特征检查请用 has_char(p)"""
        raise NotImplementedError("Tilt 不提供 characteristic，参见 has_char(p)")

    def zero(self) -> TiltElement:
        return TiltElement(self, self.pre_tilt.zero(), self.pre_tilt.one())

    def one(self) -> TiltElement:
        return TiltElement(self, self.pre_tilt.one(), self.pre_tilt.one())

    def from_int(self, n: int) -> TiltElement:
        return TiltElement(self, self.pre_tilt.from_int(n), self.pre_tilt.one())

    def __call__(self, value: Any) -> TiltElement:
        if isinstance(value, PerfectionElement) and value.ring == self.pre_tilt:
            return TiltElement(self, value, self.pre_tilt.one())
        return super().__call__(value)

    def fraction(self, num: Any, den: Optional[Any] = None) -> TiltElement:
        den = self.pre_tilt.one() if den is None else den
        return TiltElement(self, num, den)

    @property
    def algebra_map(self) -> RingHom:
        """PreTilt → Tilt，f ↦ f/1"""
        return RingHom(self.pre_tilt, self, lambda f: TiltElement(self, f, self.pre_tilt.one()),
                       name="algebraMap")

    def __repr__(self) -> str:
        return f"Tilt({self.pre_tilt.integers!r}, {self.p})"
