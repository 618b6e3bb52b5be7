"""
================================================================================
ℝ≥0 值赋值：精确值 NNValue 与赋值抽象 Valuation
Nonnegative real values and multiplicative valuations

数学：
- 非阿基米德赋值 v: R → ℝ≥0
    v(0) = 0, v(1) = 1, v(xy) = v(x)v(y), v(x + y) ≤ max(v(x), v(y))
- 本库中出现的所有非零赋值值都形如 b^{-r}，b 为剩余特征，r ∈ ℚ≥0
  （p-adic 与完美化塔上的赋值、以及它们的 p^n 次幂）
  所以用 (b, r) 精确表示，r = None 表示 0
================================================================================
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Iterable, List, Optional, Union

from ring_core import CommRing, PerfectoidInputError, RingElement, require_index

_logger = logging.getLogger(__name__)


__all__ = [
    "NNValue",
    "Valuation",
    "ValuationAxiomReport",
]


def _as_exponent(r: Union[int, Fraction]) -> Fraction:
    if isinstance(r, bool) or not isinstance(r, (int, Fraction)):
        raise PerfectoidInputError(f"赋值指数必须是 int 或 Fraction（禁止浮点）, got {type(r).__name__}")
    r = Fraction(r)
    if r < 0:
        raise PerfectoidInputError(f"赋值指数必须 >= 0（值不超过 1）, got {r}")
    return r


@functools.total_ordering
class NNValue:
    """
    精确的非负实数 base^{-exponent}

    exponent = None 表示实数 0。0 与 1 跨底数相等；其余值只在同一底数内比较，
    不同底数的非平凡值比较会抛异常（那需要比较对数，无法精确完成）。
    """

    __slots__ = ('_base', '_exponent')

    def __init__(self, base: int, exponent: Optional[Union[int, Fraction]]):
        if isinstance(base, bool) or not isinstance(base, int) or base < 2:
            raise PerfectoidInputError(f"赋值底数必须是 >= 2 的整数, got {base!r}")
        self._base = base
        self._exponent = None if exponent is None else _as_exponent(exponent)

    @classmethod
    def zero(cls, base: int) -> "NNValue":
        return cls(base, None)

    @classmethod
    def one(cls, base: int) -> "NNValue":
        return cls(base, 0)

    @property
    def base(self) -> int:
        return self._base

    @property
    def exponent(self) -> Optional[Fraction]:
        return self._exponent

    def is_zero(self) -> bool:
        return self._exponent is None

    def is_one(self) -> bool:
        return self._exponent == 0

    def _check_base(self, other: "NNValue") -> None:
        if self._base != other._base:
            raise PerfectoidInputError(f"底数不一致: {self._base} vs {other._base}")

    def __mul__(self, other: "NNValue") -> "NNValue":
        if not isinstance(other, NNValue):
            return NotImplemented
        if self.is_zero() or other.is_zero():
            return NNValue.zero(self._base)
        if other.is_one():
            return self
        if self.is_one():
            return other
        self._check_base(other)
        return NNValue(self._base, self._exponent + other._exponent)

    def __pow__(self, n: int) -> "NNValue":
        require_index(n, name="exponent")
        if n == 0:
            return NNValue.one(self._base)
        if self.is_zero():
            return self
        return NNValue(self._base, self._exponent * n)

    def as_fraction(self) -> Optional[Fraction]:
        """指数为整数时的精确有理值，否则 None（无理数）"""
        if self.is_zero():
            return Fraction(0)
        if self._exponent.denominator != 1:
            return None
        return Fraction(1, self._base ** int(self._exponent))

    def _cmp(self, other: "NNValue") -> int:
        if self.is_zero() or other.is_zero():
            return int(not self.is_zero()) - int(not other.is_zero())
        if self.is_one() or other.is_one():
            # 非零值 ≤ 1；指数越大值越小
            return (other._exponent > self._exponent) - (other._exponent < self._exponent)
        self._check_base(other)
        return (other._exponent > self._exponent) - (other._exponent < self._exponent)

    def __eq__(self, other) -> bool:
        if isinstance(other, NNValue):
            return self._cmp(other) == 0
        if isinstance(other, (int, Fraction)) and not isinstance(other, bool):
            return self.as_fraction() == other
        return NotImplemented

    def __lt__(self, other: "NNValue") -> bool:
        if not isinstance(other, NNValue):
            return NotImplemented
        return self._cmp(other) < 0

    def __hash__(self) -> int:
        # 与 int / Fraction 相等的值必须同 hash；0 与 1 也因此跨底数一致
        exact = self.as_fraction()
        if exact is not None:
            return hash(exact)
        return hash((self._base, self._exponent))

    def __float__(self) -> float:
        if self.is_zero():
            return 0.0
        return float(self._base) ** (-float(self._exponent))

    def __repr__(self) -> str:
        if self.is_zero():
            return "0"
        if self.is_one():
            return "1"
        return f"{self._base}^({-self._exponent})"


@dataclass
class ValuationAxiomReport:
    """赋值公理验证结果"""
    is_valid: bool
    checked: int
    errors: List[str] = field(default_factory=list)

    def __repr__(self) -> str:
        status = "✓ 合法" if self.is_valid else "✗ 非法"
        lines = [f"赋值公理验证: {status} (样本数 {self.checked})"]
        if self.errors:
            lines.append("错误:")
            for e in self.errors:
                lines.append(f"  - {e}")
        return "\n".join(lines)


class Valuation(ABC):
    """ℝ≥0 值的乘法赋值，值域为同一底数的 NNValue"""

    def __init__(self, domain: CommRing, base: int):
        self.domain = domain
        self.base = base

    @abstractmethod
    def value(self, x: RingElement) -> NNValue: pass

    def __call__(self, x: Any) -> NNValue:
        return self.value(self.domain(x))

    def check_axioms(self, samples: Iterable[Any]) -> ValuationAxiomReport:
        """
        在样本上检查：
        1. v(0) = 0, v(1) = 1
        2. v(x) = 0 ⟺ x = 0
        3. v(xy) = v(x)v(y)
        4. v(x + y) ≤ max(v(x), v(y))
        """
        errors: List[str] = []
        if not self(self.domain.zero()).is_zero():
            errors.append("v(0) ≠ 0")
        if not self(self.domain.one()).is_one():
            errors.append("v(1) ≠ 1")
        elems = [self.domain(s) for s in samples]
        values = [self(x) for x in elems]
        for x, vx in zip(elems, values):
            if vx.is_zero() != x.is_zero():
                errors.append(f"v({x!r}) = {vx!r} 但 x {'=' if x.is_zero() else '≠'} 0")
        for x, vx in zip(elems, values):
            for y, vy in zip(elems, values):
                if self(x * y) != vx * vy:
                    errors.append(f"v({x!r}·{y!r}) ≠ v(x)v(y) = {vx * vy!r}")
                if self(x + y) > max(vx, vy):
                    errors.append(f"v({x!r} + {y!r}) > max({vx!r}, {vy!r})")
        if errors:
            _logger.warning("valuation on %r violates %d axiom instances", self.domain, len(errors))
        return ValuationAxiomReport(is_valid=not errors, checked=len(elems), errors=errors)
