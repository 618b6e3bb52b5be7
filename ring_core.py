"""
================================================================================
环论底座：素数判定、交换环抽象、ℤ/nℤ、环同态、精度配置与异常体系
Ring Core - commutative rings, ring homomorphisms, precision config, errors

工程红线：
  - 输入缺失/不合法 -> 必须抛异常，禁止静默降级
  - 全部精确算术（int / Fraction），浮点不进入任何比较
  - 无限对象（相容序列）只在显式给出的有限窗口内判定，窗口长度来自 PrecisionConfig
================================================================================
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

_logger = logging.getLogger(__name__)


__all__ = [
    # 异常体系
    "PerfectoidError",
    "PerfectoidInputError",
    "CharacteristicError",
    "CompatibilityError",
    "NotPerfectError",
    "PerfectoidPrecisionError",
    "NotADomainError",
    "PerfectionMapError",
    # 配置
    "PrecisionConfig",
    "DEFAULT_CONFIG",
    # 基础代数结构
    "is_prime",
    "require_index",
    "RingElement",
    "CommRing",
    "ZModElement",
    "ZModRing",
    "RingHom",
]


# ══════════════════════════════════════════════════════════════════════════════
# 第一部分：异常体系
# ══════════════════════════════════════════════════════════════════════════════

class PerfectoidError(RuntimeError):
    """完美化 / 倾斜底座基础异常"""


class PerfectoidInputError(PerfectoidError):
    """输入格式/类型错误"""


class CharacteristicError(PerfectoidError):
    """基环不是特征 p：p·1 ≠ 0"""


class CompatibilityError(PerfectoidError):
    """序列违反相容条件 x_{n+1}^p = x_n"""

    def __init__(self, message: str, *, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class NotPerfectError(PerfectoidError):
    """操作需要完美环（Frobenius 双射），但收到的环不是"""


class PerfectoidPrecisionError(PerfectoidError):
    """截断精度不足"""


class NotADomainError(PerfectoidError):
    """PreTilt 不是整环 (v(p) = 1)，分式域不存在"""


class PerfectionMapError(PerfectoidError):
    """完美化映射见证在样本上失效（单射性或满射性反例）"""

    def __init__(self, message: str, *, analysis: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.analysis: Dict[str, Any] = dict(analysis or {})


# ══════════════════════════════════════════════════════════════════════════════
# 第二部分：精度配置
# ══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PrecisionConfig:
    """
    截断窗口参数。

    相容序列是无限对象，运行时只能检查有限个坐标：
    - check_depth: 相容性校验覆盖的坐标数 (坐标 0..check_depth-1)
    - search_depth: 赋值计算中寻找首个非零坐标的上界；相等与 is_zero 也看到这里

    约定 search_depth >= check_depth。
    """

    check_depth: int = 8
    search_depth: int = 32

    def __post_init__(self) -> None:
        for name in ("check_depth", "search_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise PerfectoidInputError(f"{name} 必须是正整数, got {value!r}")
        if self.search_depth < self.check_depth:
            raise PerfectoidInputError(
                f"search_depth ({self.search_depth}) 不能小于 check_depth ({self.check_depth})"
            )


DEFAULT_CONFIG = PrecisionConfig()


# ══════════════════════════════════════════════════════════════════════════════
# 第三部分：素数判定与参数校验
# ══════════════════════════════════════════════════════════════════════════════

def is_prime(n: int) -> bool:
    """Miller-Rabin素性测试 (确定性，对64位以内整数)"""
    if isinstance(n, bool) or not isinstance(n, int):
        return False
    if n < 2:
        return False
    if n == 2:
        return True
    if n % 2 == 0:
        return False
    if n < 9:
        return True
    if n % 3 == 0:
        return False

    witnesses = [2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37]

    r, d = 0, n - 1
    while d % 2 == 0:
        r += 1
        d //= 2

    for a in witnesses:
        if a >= n:
            continue
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def require_index(n: Any, *, name: str = "n") -> int:
    """坐标下标 / 迭代次数：必须是非负 int（拒绝 bool 与浮点）"""
    if isinstance(n, bool) or not isinstance(n, int):
        raise PerfectoidInputError(f"{name} 必须是 int, got {type(n).__name__}")
    if n < 0:
        raise PerfectoidInputError(f"{name} 必须 >= 0, got {n}")
    return n


# ══════════════════════════════════════════════════════════════════════════════
# 第四部分：环与环元素
# ══════════════════════════════════════════════════════════════════════════════

class RingElement(ABC):
    """交换环元素的抽象基类"""

    @property
    @abstractmethod
    def ring(self) -> "CommRing": pass

    @abstractmethod
    def __add__(self, other): pass

    @abstractmethod
    def __mul__(self, other): pass

    @abstractmethod
    def __neg__(self): pass

    @abstractmethod
    def __eq__(self, other) -> bool: pass

    @abstractmethod
    def is_zero(self) -> bool: pass

    def _coerce(self, other) -> "RingElement":
        """把 int 或同一环的元素带入 self.ring；其它一律拒绝"""
        return self.ring(other)

    def __sub__(self, other):
        return self + (-self._coerce(other))

    def __radd__(self, other):
        return self + other

    def __rmul__(self, other):
        return self * other

    def __rsub__(self, other):
        return self._coerce(other) + (-self)

    def __pow__(self, n: int):
        """快速幂（仅非负指数；交换环没有一般的逆）"""
        require_index(n, name="exponent")
        result = self.ring.one()
        base = self
        exp = n
        while exp > 0:
            if exp & 1:
                result = result * base
            base = base * base
            exp >>= 1
        return result


class CommRing(ABC):
    """
    交换环（父对象）

    子类提供 zero/one/from_int 与特征；完美环额外提供 pth_root。
    两个环对象相等当且仅当 _key() 相同，这样重复构造的同一环可以互相运算。
    """

    @abstractmethod
    def _key(self) -> Tuple: pass

    @property
    @abstractmethod
    def characteristic(self) -> int: pass

    @abstractmethod
    def zero(self) -> RingElement: pass

    @abstractmethod
    def one(self) -> RingElement: pass

    @abstractmethod
    def from_int(self, n: int) -> RingElement: pass

    @property
    def is_perfect(self) -> bool:
        return False

    def __call__(self, value: Any) -> RingElement:
        if isinstance(value, RingElement):
            if value.ring == self:
                return value
            raise PerfectoidInputError(f"元素 {value!r} 属于 {value.ring!r}，不属于 {self!r}")
        if isinstance(value, bool) or not isinstance(value, int):
            raise PerfectoidInputError(f"无法把 {type(value).__name__} 带入 {self!r}")
        return self.from_int(value)

    def has_char(self, p: int) -> bool:
        """p·1 = 0（零环对任意 p 成立）"""
        return self.from_int(p).is_zero()

    def frobenius(self, x: RingElement, p: int) -> RingElement:
        return self(x) ** p

    def pth_root(self, x: RingElement) -> RingElement:
        raise NotPerfectError(f"{self!r} 不是完美环，没有 Frobenius 的逆")

    def iterate_pth_root(self, x: RingElement, n: int) -> RingElement:
        require_index(n)
        y = self(x)
        for _ in range(n):
            y = self.pth_root(y)
        return y

    def __eq__(self, other) -> bool:
        return isinstance(other, CommRing) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())


class ZModElement(RingElement):
    """
    ℤ/nℤ 的元素

    - 内部存储为 [0, n-1] 的代表元
    - n 为素数时这是 𝔽_p，Frobenius 是恒等映射
    """

    __slots__ = ('_value', '_ring')

    def __init__(self, value: int, ring: "ZModRing"):
        self._ring = ring
        self._value = value % ring.modulus

    @property
    def ring(self) -> "ZModRing":
        return self._ring

    @property
    def value(self) -> int:
        return self._value

    def __add__(self, other) -> "ZModElement":
        other = self._coerce(other)
        return ZModElement(self._value + other._value, self._ring)

    def __mul__(self, other) -> "ZModElement":
        other = self._coerce(other)
        return ZModElement(self._value * other._value, self._ring)

    def __neg__(self) -> "ZModElement":
        return ZModElement(-self._value, self._ring)

    def __pow__(self, n: int) -> "ZModElement":
        require_index(n, name="exponent")
        return ZModElement(pow(self._value, n, self._ring.modulus), self._ring)

    def inverse(self) -> "ZModElement":
        try:
            return ZModElement(pow(self._value, -1, self._ring.modulus), self._ring)
        except ValueError:
            raise ZeroDivisionError(f"{self!r} 在 ℤ/{self._ring.modulus}ℤ 中不可逆") from None

    def __eq__(self, other) -> bool:
        if isinstance(other, ZModElement):
            return self._ring == other._ring and self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other % self._ring.modulus
        return False

    def __hash__(self) -> int:
        return hash((self._value, self._ring.modulus))

    def __repr__(self) -> str:
        return f"{self._value}₍{self._ring.modulus}₎"

    def is_zero(self) -> bool:
        return self._value == 0


class ZModRing(CommRing):
    """ℤ/nℤ；n 为素数时是完美环（Fermat: x^p = x，所以 p 次根就是自身）"""

    def __init__(self, modulus: int):
        if isinstance(modulus, bool) or not isinstance(modulus, int) or modulus < 1:
            raise PerfectoidInputError(f"模数必须是正整数, got {modulus!r}")
        self.modulus = modulus

    def _key(self) -> Tuple:
        return ("ZMod", self.modulus)

    @property
    def characteristic(self) -> int:
        return self.modulus

    @property
    def is_perfect(self) -> bool:
        return is_prime(self.modulus)

    def zero(self) -> ZModElement:
        return ZModElement(0, self)

    def one(self) -> ZModElement:
        return ZModElement(1, self)

    def from_int(self, n: int) -> ZModElement:
        return ZModElement(n, self)

    def pth_root(self, x: RingElement) -> ZModElement:
        if not self.is_perfect:
            raise NotPerfectError(f"ℤ/{self.modulus}ℤ 不是完美环")
        return self(x)

    def elements(self) -> List[ZModElement]:
        return [ZModElement(i, self) for i in range(self.modulus)]

    def __repr__(self) -> str:
        return f"ZMod({self.modulus})"


# ══════════════════════════════════════════════════════════════════════════════
# 第五部分：环同态
# ══════════════════════════════════════════════════════════════════════════════

class RingHom:
    """
    环同态 f: source → target 的可调用包装

    同态律无法在运行时证明，只能在给定样本上检查（check_hom_laws）。
    """

    def __init__(self, source: CommRing, target: CommRing,
                 fn: Callable[[RingElement], Any], name: Optional[str] = None):
        self.source = source
        self.target = target
        self._fn = fn
        self.name = name or "f"

    def __call__(self, x: Any) -> RingElement:
        return self.target(self._fn(self.source(x)))

    def compose(self, inner: "RingHom") -> "RingHom":
        """self ∘ inner"""
        if inner.target != self.source:
            raise PerfectoidInputError(
                f"无法复合: {inner.name} 的靶 {inner.target!r} ≠ {self.name} 的源 {self.source!r}"
            )
        return RingHom(inner.source, self.target, lambda x: self(inner(x)),
                       name=f"{self.name}∘{inner.name}")

    @classmethod
    def identity(cls, ring: CommRing) -> "RingHom":
        return cls(ring, ring, lambda x: x, name="id")

    def check_hom_laws(self, samples: Iterable[Any]) -> List[str]:
        """在样本上检查 f(0)=0, f(1)=1, 加法与乘法保持；返回违反项描述"""
        violations: List[str] = []
        if not self(self.source.zero()).is_zero():
            violations.append(f"{self.name}(0) ≠ 0")
        if self(self.source.one()) != self.target.one():
            violations.append(f"{self.name}(1) ≠ 1")
        elems = [self.source(s) for s in samples]
        for a in elems:
            for b in elems:
                if self(a + b) != self(a) + self(b):
                    violations.append(f"{self.name}({a!r} + {b!r}) ≠ {self.name}({a!r}) + {self.name}({b!r})")
                if self(a * b) != self(a) * self(b):
                    violations.append(f"{self.name}({a!r} · {b!r}) ≠ {self.name}({a!r}) · {self.name}({b!r})")
        if violations:
            _logger.debug("hom %s: %d violations on %d samples", self.name, len(violations), len(elems))
        return violations

    def __repr__(self) -> str:
        return f"RingHom({self.name}: {self.source!r} → {self.target!r})"
