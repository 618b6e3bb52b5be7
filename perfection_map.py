"""
================================================================================
完美化映射 (PerfectionMap)：泛性质与唯一性

π : P → R 称为完美化映射，若 P 是特征 p 的完美环且
  - 单射性：π(x^{1/p^n}) = π(y^{1/p^n}) 对所有 n 成立 ⟹ x = y
  - 满射性：任意相容序列 (r_n) 都有 x 使 π(x^{1/p^n}) = r_n
于是 x ↦ (π(x^{1/p^n}))_n 是 P ≅ Perfection(R, p)，任意两个完美化映射
之间有唯一的典范同构。

运行时无法证明单射/满射；preimage 给出满射的见证，verify 只在样本上找反例。
================================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Tuple

from perfection import Perfection, PerfectionElement
from ring_core import (
    DEFAULT_CONFIG,
    CharacteristicError,
    CommRing,
    NotPerfectError,
    PerfectionMapError,
    PerfectoidInputError,
    PrecisionConfig,
    RingElement,
    RingHom,
)

_logger = logging.getLogger(__name__)


__all__ = [
    "PerfectionMap",
]


class PerfectionMap:
    """
    π : P → R 的完美化映射见证

    preimage(f) 对 Perfection(R, p) 中的 f 返回 P 中的原像 x，满足
    π(x^{1/p^n}) = coeff_n(f)。
    """

    def __init__(self, pi: RingHom, p: int,
                 preimage: Callable[[PerfectionElement], RingElement],
                 config: PrecisionConfig = DEFAULT_CONFIG):
        source, target = pi.source, pi.target
        if not source.is_perfect:
            raise NotPerfectError(f"完美化映射的源必须是完美环，{source!r} 不是")
        if not source.has_char(p):
            raise CharacteristicError(f"{source!r} 不是特征 {p}")
        self.pi = pi
        self.p = p
        self._preimage = preimage
        self.perfection = Perfection(target, p, config)

    @property
    def source(self) -> CommRing:
        return self.pi.source

    @property
    def target(self) -> CommRing:
        return self.pi.target

    @classmethod
    def of_perfection(cls, base: CommRing, p: int,
                      config: PrecisionConfig = DEFAULT_CONFIG) -> "PerfectionMap":
        """coeff_0 : Perfection(R, p) → R"""
        perf = Perfection(base, p, config)
        return cls(perf.coeff(0), p, lambda f: f, config)

    @classmethod
    def identity(cls, ring: CommRing, p: int,
                 config: PrecisionConfig = DEFAULT_CONFIG) -> "PerfectionMap":
        """R 完美时 id : R → R"""
        if not ring.is_perfect:
            raise NotPerfectError(f"{ring!r} 不是完美环")
        return cls(RingHom.identity(ring), p, lambda f: f.coeff(0), config)

    # ── 同构 P ≅ Perfection(R) ──────────────────────────────────────────────

    def equiv(self) -> Tuple[RingHom, RingHom]:
        """(P → Perfection(R), Perfection(R) → P)"""
        P, perf, pi = self.source, self.perfection, self.pi
        to_perfection = RingHom(
            P, perf,
            lambda x: perf.element(lambda n: pi(P.iterate_pth_root(x, n)), validate=False),
            name="equiv",
        )
        from_perfection = RingHom(perf, P, self._preimage, name="equiv.symm")
        return to_perfection, from_perfection

    def comp_equiv(self, x: Any) -> bool:
        """coeff_0 ∘ equiv = π"""
        to_perfection, _ = self.equiv()
        return to_perfection(x).coeff(0) == self.pi(x)

    # ── 泛性质 ──────────────────────────────────────────────────────────────

    def lift(self, f: RingHom) -> RingHom:
        """f: R' → R，R' 完美  ↦  R' → P"""
        if f.target != self.target:
            raise PerfectoidInputError(f"lift 需要靶为 {self.target!r} 的同态, got {f.target!r}")
        lifted = Perfection.lift(f, self.p, self.perfection.config)
        _, from_perfection = self.equiv()
        return from_perfection.compose(lifted)

    def unlift(self, g: RingHom) -> RingHom:
        """g: R' → P  ↦  π ∘ g"""
        return self.pi.compose(g)

    @staticmethod
    def map(pi1: "PerfectionMap", pi2: "PerfectionMap", phi: RingHom) -> RingHom:
        """φ: M₁ → M₂ 诱导 P₁ → P₂，即 π₂.lift(φ ∘ π₁)"""
        return pi2.lift(phi.compose(pi1.pi))

    # ── 样本验证 ────────────────────────────────────────────────────────────

    def verify(self, samples: Iterable[Any] = (),
               sequences: Iterable[PerfectionElement] = ()) -> None:
        """在样本上寻找单射性/满射性反例；找到即抛 PerfectionMapError"""
        to_perfection, from_perfection = self.equiv()
        elems = [self.source(x) for x in samples]
        for i, x in enumerate(elems):
            for y in elems[i + 1:]:
                if x != y and to_perfection(x) == to_perfection(y):
                    raise PerfectionMapError(
                        "单射性反例：不同元素的全部 p 幂次根在 π 下像相同",
                        analysis={"x": repr(x), "y": repr(y)},
                    )
        checked = 0
        for f in sequences:
            f = self.perfection(f)
            if to_perfection(from_perfection(f)) != f:
                raise PerfectionMapError(
                    "满射性反例：preimage 给出的原像不映回原序列",
                    analysis={"sequence": repr(f)},
                )
            checked += 1
        _logger.debug("perfection map %s verified on %d samples, %d sequences",
                      self.pi.name, len(elems), checked)

    def __repr__(self) -> str:
        return f"PerfectionMap({self.pi.name}: {self.source!r} → {self.target!r}, p={self.p})"
