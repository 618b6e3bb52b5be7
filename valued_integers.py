"""
===========================================================
赋值域的整数环 O 的截断模型
===========================================================
- PadicIntegers      : ℤ_ℓ 截断到 ℓ^N，数字向量 + 进位
- PerfectoidIntegers : ℤ_ℓ[ℓ^{1/ℓ^∞}] 截断到指数 N，
                       分数指数数字展开 Σ d_a ℓ^a, a ∈ ℤ[1/ℓ]
两者的赋值都是 v(x) = ℓ^{-ord(x)}，在 O 上有界于 1，v(ℓ) = ℓ^{-1}。

模 p 约化的代表元选取是显式、确定的：
  - p = ℓ 时保留指数 < 1 的数字（x - rep 的数字全部在指数 >= 1，属于 pO）
  - p ≠ ℓ 时 p 是单位，pO = O，代表元统一取 0
===========================================================
"""

from __future__ import annotations

import heapq
import logging
from abc import abstractmethod
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ring_core import (
    CommRing,
    PerfectoidInputError,
    RingElement,
    is_prime,
    require_index,
)
from valuation import NNValue, Valuation

_logger = logging.getLogger(__name__)


__all__ = [
    "ValuedIntegerRing",
    "IntegerValuation",
    "PadicInteger",
    "PadicIntegers",
    "PerfectoidInteger",
    "PerfectoidIntegers",
]


# ===========================================================
# Section 1: 抽象整数环
# ===========================================================

class ValuedIntegerRing(CommRing):
    """
    赋值域 K 的整数环 O = {x : v(x) ≤ 1} 的截断模型

    prime     : 剩余特征 ℓ
    precision : 截断 N，指数 >= N 的数字全部丢弃
    """

    def __init__(self, prime: int, precision: int):
        if not is_prime(prime):
            raise PerfectoidInputError(f"整数环需要素数剩余特征，但收到 ℓ={prime!r}")
        if isinstance(precision, bool) or not isinstance(precision, int) or precision < 2:
            raise PerfectoidInputError(f"截断精度必须 >= 2 才能看见 v(ℓ) = ℓ^-1, got {precision!r}")
        self.prime = prime
        self.precision = precision
        self._valuation = IntegerValuation(self)

    @property
    def characteristic(self) -> int:
        return 0

    @property
    def valuation(self) -> "IntegerValuation":
        return self._valuation

    @abstractmethod
    def ord(self, x: RingElement) -> Optional[Fraction]:
        """加法赋值：首个非零数字的指数；零元返回 None"""

    def is_unit_int(self, n: int) -> bool:
        return n % self.prime != 0

    @abstractmethod
    def reduce_mod_p(self, x: RingElement, p: int) -> RingElement:
        """O/pO 的规范代表元"""

    @abstractmethod
    def mod_p_pth_root(self, x: RingElement, p: int) -> RingElement:
        """选定的模 p 的 p 次根：返回 y 使 y^p ≡ x (mod p)"""


class IntegerValuation(Valuation):
    """v(x) = ℓ^{-ord(x)}"""

    def __init__(self, integers: ValuedIntegerRing):
        super().__init__(integers, integers.prime)

    def value(self, x: RingElement) -> NNValue:
        return NNValue(self.base, self.domain.ord(x))


# ===========================================================
# Section 2: ℤ_ℓ 截断
# ===========================================================

class PadicInteger(RingElement):
    """
    p-adic整数环 Zp 的截断表示
    digits[i] 是 ℓ^i 系数，范围 [0, ℓ-1]

    数学定义: x = Σ_{i=0}^{N-1} digits[i] * ℓ^i
    """

    def __init__(self, digits: List[int], ring: "PadicIntegers"):
        if len(digits) != ring.precision:
            raise PerfectoidInputError(f"digits 长度 {len(digits)} 必须等于精度 {ring.precision}")
        self._ring = ring
        # 整体规范化（允许调用方传入越界数字）
        self.digits = ring._digits_of(sum(d * ring.prime ** i for i, d in enumerate(digits)))

    @property
    def ring(self) -> "PadicIntegers":
        return self._ring

    @property
    def p(self) -> int:
        return self._ring.prime

    @property
    def k(self) -> int:
        return self._ring.precision

    def valuation(self) -> Optional[int]:
        """ord_ℓ(x) = min{i : digits[i] != 0}，零元素返回 None"""
        for i, d in enumerate(self.digits):
            if d != 0:
                return i
        return None

    def to_int_mod_pk(self) -> int:
        """转换为整数 mod ℓ^N"""
        result = 0
        pk = 1
        for d in self.digits:
            result += d * pk
            pk *= self.p
        return result

    def __add__(self, other) -> "PadicInteger":
        other = self._coerce(other)
        result = []
        carry = 0
        for i in range(self.k):
            s = self.digits[i] + other.digits[i] + carry
            result.append(s % self.p)
            carry = s // self.p
        return PadicInteger(result, self._ring)

    def __sub__(self, other) -> "PadicInteger":
        other = self._coerce(other)
        result = []
        borrow = 0
        for i in range(self.k):
            d = self.digits[i] - other.digits[i] - borrow
            if d < 0:
                d += self.p
                borrow = 1
            else:
                borrow = 0
            result.append(d)
        return PadicInteger(result, self._ring)

    def __neg__(self) -> "PadicInteger":
        return self._ring.zero() - self

    def __mul__(self, other) -> "PadicInteger":
        other = self._coerce(other)
        # 卷积乘法，截断到 ℓ^N
        result = [0] * self.k
        for i in range(self.k):
            for j in range(self.k - i):
                result[i + j] += self.digits[i] * other.digits[j]
        carry = 0
        for i in range(self.k):
            result[i] += carry
            carry = result[i] // self.p
            result[i] %= self.p
        return PadicInteger(result, self._ring)

    def __eq__(self, other) -> bool:
        if isinstance(other, int) and not isinstance(other, bool):
            other = self._ring.from_int(other)
        return (isinstance(other, PadicInteger) and self._ring == other._ring
                and self.digits == other.digits)

    def __hash__(self) -> int:
        return hash((self._ring._key(), tuple(self.digits)))

    def is_zero(self) -> bool:
        return not any(self.digits)

    def __repr__(self):
        return f"Zp({self.to_int_mod_pk()} mod {self.p}^{self.k})"


class PadicIntegers(ValuedIntegerRing):
    """ℤ_ℓ 截断到 ℓ^N；离散赋值，Frobenius 在 O/ℓ = 𝔽_ℓ 上是恒等映射"""

    def _key(self) -> Tuple:
        return ("Zp", self.prime, self.precision)

    def _digits_of(self, n: int) -> List[int]:
        n %= self.prime ** self.precision
        digits = []
        for _ in range(self.precision):
            n, d = divmod(n, self.prime)
            digits.append(d)
        return digits

    def zero(self) -> PadicInteger:
        return PadicInteger([0] * self.precision, self)

    def one(self) -> PadicInteger:
        return self.from_int(1)

    def from_int(self, n: int) -> PadicInteger:
        return PadicInteger(self._digits_of(n), self)

    def ord(self, x: RingElement) -> Optional[Fraction]:
        i = self(x).valuation()
        return None if i is None else Fraction(i)

    def reduce_mod_p(self, x: RingElement, p: int) -> PadicInteger:
        x = self(x)
        if p != self.prime:
            return self.zero()
        return self.from_int(x.digits[0])

    def mod_p_pth_root(self, x: RingElement, p: int) -> PadicInteger:
        # O/ℓ = 𝔽_ℓ：d^ℓ ≡ d，p 次根就是代表元本身
        return self.reduce_mod_p(x, p)

    def __repr__(self) -> str:
        return f"PadicIntegers({self.prime}, precision={self.precision})"


# ===========================================================
# Section 3: ℤ_ℓ[ℓ^{1/ℓ^∞}] 截断（完美胚整数环）
# ===========================================================

def _is_power_of(d: int, prime: int) -> bool:
    while d % prime == 0:
        d //= prime
    return d == 1


def _as_tower_exponent(a: Union[int, Fraction], prime: int) -> Fraction:
    if isinstance(a, bool) or not isinstance(a, (int, Fraction)):
        raise PerfectoidInputError(f"指数必须是 int 或 Fraction（禁止浮点）, got {type(a).__name__}")
    a = Fraction(a)
    if a < 0:
        raise PerfectoidInputError(f"整数环元素的指数必须 >= 0, got {a}")
    if not _is_power_of(a.denominator, prime):
        raise PerfectoidInputError(f"指数 {a} 不在 ℤ[1/{prime}] 中")
    return a


def _normalize_digits(raw: Dict[Fraction, int], prime: int,
                      precision: int) -> Tuple[Tuple[Fraction, int], ...]:
    """
    把任意整数系数 {a: c_a} 规范化为数字 0 <= d_a < ℓ

    c = qℓ + r：保留 r，把 q 进位到指数 a + 1（ℓ·ℓ^a = ℓ^{a+1}）。
    负系数同样适用（divmod 向下取整），进位链在指数 N 处截断，必然终止。
    """
    coeffs = {a: c for a, c in raw.items() if c != 0}
    heap = list(coeffs)
    heapq.heapify(heap)
    result: Dict[Fraction, int] = {}
    while heap:
        a = heapq.heappop(heap)
        c = coeffs.pop(a, 0)
        if a >= precision or c == 0:
            continue
        q, r = divmod(c, prime)
        if r:
            result[a] = r
        if q:
            nxt = a + 1
            if nxt not in coeffs:
                heapq.heappush(heap, nxt)
                coeffs[nxt] = 0
            coeffs[nxt] += q
    return tuple(sorted(result.items()))


class PerfectoidInteger(RingElement):
    """
    ℤ_ℓ[ℓ^{1/ℓ^∞}] 的元素 Σ d_a ℓ^a

    在每个有限层 ℤ_ℓ[ℓ^{1/ℓ^m}]（离散赋值环，一致化元 π = ℓ^{1/ℓ^m}）中
    数字展开 Σ d_i π^i, d_i ∈ [0, ℓ-1] 唯一，所以数字元组是规范形式。
    """

    def __init__(self, terms: Tuple[Tuple[Fraction, int], ...], ring: "PerfectoidIntegers"):
        self._ring = ring
        self.terms = terms

    @property
    def ring(self) -> "PerfectoidIntegers":
        return self._ring

    def __add__(self, other) -> "PerfectoidInteger":
        other = self._coerce(other)
        raw: Dict[Fraction, int] = dict(self.terms)
        for a, d in other.terms:
            raw[a] = raw.get(a, 0) + d
        return self._ring._from_raw(raw)

    def __neg__(self) -> "PerfectoidInteger":
        return self._ring._from_raw({a: -d for a, d in self.terms})

    def __mul__(self, other) -> "PerfectoidInteger":
        other = self._coerce(other)
        raw: Dict[Fraction, int] = {}
        for a, d in self.terms:
            for b, e in other.terms:
                if a + b < self._ring.precision:
                    raw[a + b] = raw.get(a + b, 0) + d * e
        return self._ring._from_raw(raw)

    def __eq__(self, other) -> bool:
        if isinstance(other, int) and not isinstance(other, bool):
            other = self._ring.from_int(other)
        return (isinstance(other, PerfectoidInteger) and self._ring == other._ring
                and self.terms == other.terms)

    def __hash__(self) -> int:
        return hash((self._ring._key(), self.terms))

    def is_zero(self) -> bool:
        return not self.terms

    def leading_exponent(self) -> Optional[Fraction]:
        return self.terms[0][0] if self.terms else None

    def __repr__(self) -> str:
        if not self.terms:
            return "0"
        parts = []
        for a, d in self.terms:
            if a == 0:
                parts.append(f"{d}")
            else:
                parts.append(f"{d}·{self._ring.prime}^({a})")
        return " + ".join(parts)


class PerfectoidIntegers(ValuedIntegerRing):
    """
    O = ℤ_ℓ[ℓ^{1/ℓ^∞}]，ℚ_ℓ(ℓ^{1/ℓ^∞}) 的整数环（完美胚域）

    O/ℓ ≅ 𝔽_ℓ[t^{1/ℓ^∞}]/(t)，其上 Frobenius 满射但不单射
    （(ℓ^{1/ℓ})^ℓ = ℓ ≡ 0），这正是 PreTilt 中坐标 0 可以为零而元素非零的原因。
    """

    def _key(self) -> Tuple:
        return ("ZpPerfectoid", self.prime, self.precision)

    def _from_raw(self, raw: Dict[Fraction, int]) -> PerfectoidInteger:
        return PerfectoidInteger(_normalize_digits(raw, self.prime, self.precision), self)

    def zero(self) -> PerfectoidInteger:
        return PerfectoidInteger((), self)

    def one(self) -> PerfectoidInteger:
        return self.from_int(1)

    def from_int(self, n: int) -> PerfectoidInteger:
        return self._from_raw({Fraction(0): n})

    def monomial(self, exponent: Union[int, Fraction], digit: int = 1) -> PerfectoidInteger:
        """digit · ℓ^exponent"""
        a = _as_tower_exponent(exponent, self.prime)
        if isinstance(digit, bool) or not isinstance(digit, int):
            raise PerfectoidInputError(f"系数必须是 int, got {type(digit).__name__}")
        return self._from_raw({a: digit})

    def from_terms(self, terms: Iterable[Tuple[Union[int, Fraction], int]]) -> PerfectoidInteger:
        raw: Dict[Fraction, int] = {}
        for a, d in terms:
            a = _as_tower_exponent(a, self.prime)
            raw[a] = raw.get(a, 0) + d
        return self._from_raw(raw)

    def prime_root(self, n: int) -> PerfectoidInteger:
        """ℓ^{1/ℓ^n}"""
        require_index(n)
        return self.monomial(Fraction(1, self.prime ** n))

    def ord(self, x: RingElement) -> Optional[Fraction]:
        return self(x).leading_exponent()

    def reduce_mod_p(self, x: RingElement, p: int) -> PerfectoidInteger:
        x = self(x)
        if p != self.prime:
            return self.zero()
        return PerfectoidInteger(tuple((a, d) for a, d in x.terms if a < 1), self)

    def mod_p_pth_root(self, x: RingElement, p: int) -> PerfectoidInteger:
        # (Σ d_a ℓ^{a/ℓ})^ℓ ≡ Σ d_a^ℓ ℓ^a ≡ Σ d_a ℓ^a (mod ℓ)
        rep = self.reduce_mod_p(x, p)
        if rep.is_zero():
            return rep
        return PerfectoidInteger(tuple((a / p, d) for a, d in rep.terms), self)

    def __repr__(self) -> str:
        return f"PerfectoidIntegers({self.prime}, precision={self.precision})"
