"""
================================================================================
完美化：Frobenius 逆极限
Monoid / Ring Perfection - projective limit under x ↦ x^p

数学：
- 交换幺半群 M 的完美化  lim_{x ↦ x^p} M = {(x_n)_{n≥0} : x_{n+1}^p = x_n}
- 特征 p 交换环 R 的完美化 Perfection(R, p)：同样的相容序列，逐坐标加法与乘法
- coeff_n : Perfection(R) → R 是环同态（第 n 个投影）
- pth_root : (x_n) ↦ (x_{n+1}) 只是下标平移，它与 Frobenius 互为逆
  => Perfection(R, p) 是完美环
- 泛性质：R 完美时 Hom(R, S) ≃ Hom(R, Perfection(S))，f ↦ lift(f)，g ↦ coeff_0 ∘ g

实现说明：
- 元素是惰性序列：坐标函数 + 记忆化；构造时在 check_depth 窗口内校验相容性
- 相等与 is_zero 看坐标 search_depth - 1（它决定所有更低坐标），与 val 的搜索窗口一致；check_depth 只用于相容性校验
================================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

from ring_core import (
    DEFAULT_CONFIG,
    CharacteristicError,
    CommRing,
    CompatibilityError,
    NotPerfectError,
    PerfectoidInputError,
    PrecisionConfig,
    RingElement,
    RingHom,
    is_prime,
    require_index,
)

_logger = logging.getLogger(__name__)


__all__ = [
    "MonoidPerfection",
    "MonoidPerfectionElement",
    "Perfection",
    "PerfectionElement",
]


# ══════════════════════════════════════════════════════════════════════════════
# 第一部分：幺半群完美化
# ══════════════════════════════════════════════════════════════════════════════

class MonoidPerfectionElement:
    """
    相容序列 (x_0, x_1, x_2, ...)，x_{n+1}^p = x_n

    不可变值类型；坐标按需计算并缓存。
    """

    def __init__(self, parent: "MonoidPerfection", fn: Callable[[int], Any]):
        self._parent = parent
        self._fn = fn
        self._cache: Dict[int, Any] = {}

    @property
    def parent(self) -> "MonoidPerfection":
        return self._parent

    def coeff(self, n: int):
        require_index(n)
        if n not in self._cache:
            self._cache[n] = self._fn(n)
        return self._cache[n]

    def window(self, depth: Optional[int] = None) -> np.ndarray:
        """前 depth 个坐标（numpy object 数组）"""
        depth = self._parent.config.check_depth if depth is None else require_index(depth, name="depth")
        out = np.empty(depth, dtype=object)
        for n in range(depth):
            out[n] = self.coeff(n)
        return out

    def _same_parent(self, other: "MonoidPerfectionElement") -> None:
        if other._parent != self._parent:
            raise PerfectoidInputError(f"完美化不一致: {self._parent!r} vs {other._parent!r}")

    def __mul__(self, other):
        if not isinstance(other, MonoidPerfectionElement):
            return NotImplemented
        self._same_parent(other)
        return self._parent._make(lambda n: self.coeff(n) * other.coeff(n))

    def __pow__(self, k: int):
        require_index(k, name="exponent")
        return self._parent._make(lambda n: self.coeff(n) ** k)

    def pth_root(self):
        """下标平移 (x_n) ↦ (x_{n+1})"""
        return self._parent._make(lambda n: self.coeff(n + 1))

    def frobenius(self):
        """x ↦ x^p；由相容性，第 n ≥ 1 个坐标就是 x_{n-1}"""
        p = self._parent.p
        return self._parent._make(lambda n: self.coeff(n - 1) if n > 0 else self.coeff(0) ** p)

    def __eq__(self, other) -> bool:
        if not isinstance(other, MonoidPerfectionElement) or other._parent != self._parent:
            return NotImplemented
        # x_m = x_n^{p^{n-m}}：坐标 n 决定全部 m <= n，与 val 的搜索窗口一致
        n = self._parent.config.search_depth - 1
        return bool(self.coeff(n) == other.coeff(n))

    __hash__ = None

    def __repr__(self) -> str:
        shown = ", ".join(repr(self.coeff(n)) for n in range(min(4, self._parent.config.check_depth)))
        return f"({shown}, ...)"


class MonoidPerfection:
    """交换幺半群关于 x ↦ x^p 的完美化（不要求特征）"""

    element_class = MonoidPerfectionElement

    def __init__(self, one: Any, p: int, config: PrecisionConfig = DEFAULT_CONFIG):
        if not is_prime(p):
            raise PerfectoidInputError(f"完美化需要素数 p，但收到 p={p!r}")
        if not isinstance(config, PrecisionConfig):
            raise PerfectoidInputError(f"config 必须是 PrecisionConfig, got {type(config).__name__}")
        self._one = one
        self.p = p
        self.config = config

    def _key(self) -> Tuple:
        return ("MonoidPerfection", repr(self._one), self.p, self.config)

    def __eq__(self, other) -> bool:
        return (isinstance(other, MonoidPerfection) and type(other) is type(self)
                and self._key() == other._key())

    def __hash__(self) -> int:
        return hash(self._key())

    def _coerce_coordinate(self, value: Any) -> Any:
        return value

    def _make(self, fn: Callable[[int], Any]):
        return self.element_class(self, fn)

    def first_incompatible_index(self, x: MonoidPerfectionElement,
                                 depth: Optional[int] = None) -> Optional[int]:
        """首个 n 使 x_{n+1}^p ≠ x_n；窗口内全部相容返回 None"""
        depth = self.config.check_depth if depth is None else require_index(depth, name="depth")
        for n in range(depth):
            if x.coeff(n + 1) ** self.p != x.coeff(n):
                return n
        return None

    def validate(self, x: MonoidPerfectionElement) -> MonoidPerfectionElement:
        bad = self.first_incompatible_index(x)
        if bad is not None:
            raise CompatibilityError(
                f"坐标 {bad + 1} 的 {self.p} 次幂 {x.coeff(bad + 1) ** self.p!r} ≠ 坐标 {bad} 的 {x.coeff(bad)!r}",
                index=bad,
            )
        return x

    def element(self, fn: Callable[[int], Any], validate: bool = True):
        """由坐标函数 n ↦ x_n 构造元素；validate=True 时在 check_depth 窗口内校验相容性"""
        if not callable(fn):
            raise PerfectoidInputError(f"坐标函数必须可调用, got {type(fn).__name__}")
        elem = self._make(lambda n: self._coerce_coordinate(fn(n)))
        return self.validate(elem) if validate else elem

    def from_root_tower(self, x: Any, root: Callable[[Any], Any]):
        """x_0 = x, x_{n+1} = root(x_n)；root 必须给出 p 次根"""
        x = self._coerce_coordinate(x)
        holder: Dict[str, MonoidPerfectionElement] = {}

        def fn(n: int):
            if n == 0:
                return x
            return self._coerce_coordinate(root(holder["elem"].coeff(n - 1)))

        holder["elem"] = self._make(fn)
        return self.validate(holder["elem"])

    def one(self):
        return self._make(lambda n: self._one)

    def coeff_of(self, x: MonoidPerfectionElement, n: int):
        return x.coeff(n)

    def __repr__(self) -> str:
        return f"MonoidPerfection(one={self._one!r}, p={self.p})"


# ══════════════════════════════════════════════════════════════════════════════
# 第二部分：环完美化
# ══════════════════════════════════════════════════════════════════════════════

class PerfectionElement(MonoidPerfectionElement, RingElement):
    """Perfection(R, p) 的元素：逐坐标加法与乘法"""

    @property
    def ring(self) -> "Perfection":
        return self._parent

    def _as_element(self, other) -> "PerfectionElement":
        return self._parent(other)

    def __add__(self, other) -> "PerfectionElement":
        other = self._as_element(other)
        return self._parent._make(lambda n: self.coeff(n) + other.coeff(n))

    def __mul__(self, other) -> "PerfectionElement":
        other = self._as_element(other)
        return self._parent._make(lambda n: self.coeff(n) * other.coeff(n))

    def __neg__(self) -> "PerfectionElement":
        return self._parent._make(lambda n: -self.coeff(n))

    def __eq__(self, other) -> bool:
        if isinstance(other, int) and not isinstance(other, bool):
            other = self._parent.from_int(other)
        return MonoidPerfectionElement.__eq__(self, other)

    __hash__ = None

    def is_zero(self) -> bool:
        """search_depth 窗口内全为零；非零性向前传播，只需看最后一个坐标"""
        return self.coeff(self._parent.config.search_depth - 1).is_zero()


class Perfection(MonoidPerfection, CommRing):
    """
    Perfection(R, p)：特征 p 交换环 R 的完美化

    前提：p 为素数且 p·1 = 0（否则 Frobenius 不是环同态）。
    """

    element_class = PerfectionElement

    def __init__(self, base: CommRing, p: int, config: PrecisionConfig = DEFAULT_CONFIG):
        if not isinstance(base, CommRing):
            raise PerfectoidInputError(f"基环必须是 CommRing, got {type(base).__name__}")
        MonoidPerfection.__init__(self, base.one(), p, config)
        if not base.has_char(p):
            raise CharacteristicError(f"基环 {base!r} 不是特征 {p}: {p}·1 ≠ 0")
        self.base = base

    def _key(self) -> Tuple:
        # 精度不同的完美化给出不同的相等/赋值判定，不能互换元素
        return ("Perfection", self.base._key(), self.p, self.config)

    __eq__ = CommRing.__eq__
    __hash__ = CommRing.__hash__

    def _coerce_coordinate(self, value: Any) -> RingElement:
        return self.base(value)

    @property
    def characteristic(self) -> int:
        return self.base.characteristic

    @property
    def is_perfect(self) -> bool:
        return True

    def zero(self) -> PerfectionElement:
        zero = self.base.zero()
        return self._make(lambda n: zero)

    def one(self) -> PerfectionElement:
        one = self.base.one()
        return self._make(lambda n: one)

    def from_int(self, n: int) -> PerfectionElement:
        # n·1 落在素域 𝔽_p 中，(n·1)^p = n·1，常序列相容
        c = self.base.from_int(n)
        return self._make(lambda k: c)

    def from_perfect(self, x: Any) -> PerfectionElement:
        """R 完美时：x ↦ (x, x^{1/p}, x^{1/p^2}, ...)"""
        if not self.base.is_perfect:
            raise NotPerfectError(f"{self.base!r} 不是完美环，无法取唯一的 p 次根")
        return self.from_root_tower(x, self.base.pth_root)

    # ── 完美环结构 ──────────────────────────────────────────────────────────

    def pth_root(self, x: Any) -> PerfectionElement:
        return self(x).pth_root()

    def iterate_frobenius(self, x: Any, n: int) -> PerfectionElement:
        require_index(n)
        y = self(x)
        for _ in range(n):
            y = y.frobenius()
        return y

    # ── 环同态 ──────────────────────────────────────────────────────────────

    def coeff(self, n: int) -> RingHom:
        require_index(n)
        return RingHom(self, self.base, lambda f: f.coeff(n), name=f"coeff_{n}")

    def pth_root_hom(self) -> RingHom:
        return RingHom(self, self, lambda f: f.pth_root(), name="pthRoot")

    def frobenius_hom(self) -> RingHom:
        return RingHom(self, self, lambda f: f.frobenius(), name="frobenius")

    # ── 非零性沿下标向前传播 ────────────────────────────────────────────────

    def coeff_ne_zero_of_le(self, f: Any, m: int, n: int) -> bool:
        """
        coeff_m(f) ≠ 0 且 m ≤ n ⟹ coeff_n(f) ≠ 0

        因为 coeff_m = coeff_n^{p^{n-m}}，零的幂还是零。返回结论是否成立。
        """
        require_index(m, name="m")
        require_index(n, name="n")
        if m > n:
            raise PerfectoidInputError(f"需要 m <= n, got m={m}, n={n}")
        f = self(f)
        if f.coeff(m).is_zero():
            raise PerfectoidInputError(f"前提不成立: coeff_{m}(f) = 0")
        return not f.coeff(n).is_zero()

    def first_nonzero_coeff(self, f: Any, bound: Optional[int] = None) -> Optional[int]:
        """最小的 n < bound 使 coeff_n(f) ≠ 0；bound 默认 search_depth"""
        bound = self.config.search_depth if bound is None else require_index(bound, name="bound")
        f = self(f)
        for n in range(bound):
            if not f.coeff(n).is_zero():
                return n
        return None

    # ── 泛性质 ──────────────────────────────────────────────────────────────

    @staticmethod
    def lift(f: RingHom, p: int, config: PrecisionConfig = DEFAULT_CONFIG) -> RingHom:
        """
        f: R → S，R 完美  ↦  R → Perfection(S, p)
        r ↦ (f(r), f(r^{1/p}), f(r^{1/p^2}), ...)
        """
        source = f.source
        if not source.is_perfect:
            raise NotPerfectError(f"lift 需要完美的源环，{source!r} 不是")
        target = Perfection(f.target, p, config)

        def lifted(r: RingElement) -> PerfectionElement:
            return target.element(lambda n: f(source.iterate_pth_root(r, n)), validate=False)

        return RingHom(source, target, lifted, name=f"lift({f.name})")

    @staticmethod
    def unlift(g: RingHom) -> RingHom:
        """g: R → Perfection(S, p)  ↦  coeff_0 ∘ g : R → S"""
        if not isinstance(g.target, Perfection):
            raise PerfectoidInputError(f"unlift 需要靶为完美化的同态, got {g.target!r}")
        return g.target.coeff(0).compose(g)

    @staticmethod
    def map(f: RingHom, p: int, config: PrecisionConfig = DEFAULT_CONFIG) -> RingHom:
        """f: R → S  ↦  Perfection(R) → Perfection(S)，逐坐标作用"""
        source = Perfection(f.source, p, config)
        target = Perfection(f.target, p, config)
        return RingHom(
            source, target,
            lambda x: target.element(lambda n: f(x.coeff(n)), validate=False),
            name=f"map({f.name})",
        )

    def __repr__(self) -> str:
        return f"Perfection({self.base!r}, {self.p})"
