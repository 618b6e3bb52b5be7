#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
================================================================================
完美化 / ModP / PreTilt / Tilt 严格验收套件

验收标准：
  1. 完美化：coeff(n, pthRoot f) = coeff(n+1, f)，Frobenius ∘ pthRoot = id = pthRoot ∘ Frobenius
  2. ModP：preVal 良定义、乘法、超度量、阈值 v(p) < preVal(x) ⟺ x ≠ 0
  3. PreTilt：val 下标无关、乘法、超度量、零点只在 0；坐标 0 为零的非零元素
  4. Tilt：v(p) ≠ 1 时域结构成立，v(p) = 1 时构造被拒绝
  5. 5-adic 场景：[1, 1, 1, ...] 的 coeff_0 是 1，val 是 1

任何一项失败，整体返回 False；CLI 退出码 1。
================================================================================
"""

from __future__ import annotations

import argparse
import logging
from fractions import Fraction
from typing import Callable, Dict, List, Optional

import numpy as np

from mod_p import ModP, mul_ne_zero_of_pow_p_ne_zero
from perfection import Perfection
from perfection_map import PerfectionMap
from pre_tilt import PreTilt
from ring_core import (
    NotADomainError,
    PerfectoidError,
    PrecisionConfig,
    RingHom,
    ZModRing,
    is_prime,
)
from tilt import Tilt
from valued_integers import PadicIntegers, PerfectoidIntegers

_logger = logging.getLogger("perfectoid_smoke")


__all__ = [
    "strict_perfection_validation",
    "strict_mod_p_validation",
    "strict_pre_tilt_validation",
    "strict_tilt_validation",
    "run_strict_validation_suite",
    "main",
]


def _configure_smoke_logging(quiet: bool = False) -> None:
    """只在未配置 handler 时注入默认配置，避免污染宿主应用。"""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(levelname)s] %(name)s: %(message)s",
        )
    root.setLevel(logging.WARNING if quiet else logging.INFO)


class _Tally:
    """验收计数器：逐项记录 PASS / FAIL"""

    def __init__(self, stage: str):
        self.stage = stage
        self.total = 0
        self.failed: List[str] = []

    def check(self, name: str, passed: bool, detail: str = "") -> None:
        self.total += 1
        status = "✓ PASS" if passed else "✗ FAIL"
        if detail:
            _logger.info("[%s %d] %s: %s | %s", self.stage, self.total, name, status, detail)
        else:
            _logger.info("[%s %d] %s: %s", self.stage, self.total, name, status)
        if not passed:
            self.failed.append(name)

    @property
    def all_passed(self) -> bool:
        return not self.failed


def strict_perfection_validation(prime: int, config: PrecisionConfig) -> bool:
    """𝔽_p 的完美化 + 泛性质 + 完美化映射"""
    tally = _Tally("perfection")
    Fp = ZModRing(prime)
    perf = Perfection(Fp, prime, config)
    samples = [perf.from_perfect(c) for c in Fp.elements()]

    f = samples[-1]
    shift_ok = all(f.pth_root().coeff(n) == f.coeff(n + 1) for n in range(config.check_depth))
    tally.check("coeff(n, pthRoot f) = coeff(n+1, f)", shift_ok)

    inverse_ok = all(x.frobenius().pth_root() == x and x.pth_root().frobenius() == x for x in samples)
    tally.check("Frobenius ∘ pthRoot = id = pthRoot ∘ Frobenius", inverse_ok)

    violations: List[str] = []
    for n in range(3):
        violations += perf.coeff(n).check_hom_laws(samples)
    violations += perf.pth_root_hom().check_hom_laws(samples)
    tally.check("coeff_n / pthRoot 是环同态", not violations, f"violations={len(violations)}")

    ident = RingHom.identity(Fp)
    lifted = Perfection.lift(ident, prime, config)
    roundtrip = Perfection.unlift(lifted)
    tally.check("unlift ∘ lift = id", all(roundtrip(c) == c for c in Fp.elements()))

    pm = PerfectionMap.of_perfection(Fp, prime, config)
    try:
        pm.verify(samples, samples)
        tally.check("coeff_0 是完美化映射", all(pm.comp_equiv(x) for x in samples))
    except PerfectoidError as exc:
        tally.check("coeff_0 是完美化映射", False, str(exc))

    try:
        Perfection(ZModRing(prime * prime), prime, config)
        tally.check("ℤ/p²ℤ 被拒绝 (特征不是 p)", False)
    except PerfectoidError:
        tally.check("ℤ/p²ℤ 被拒绝 (特征不是 p)", True)

    return tally.all_passed


def strict_mod_p_validation(prime: int, precision: int) -> bool:
    """O = ℤ_p[p^{1/p^∞}] 上 preVal 的全部性质"""
    tally = _Tally("mod_p")
    O = PerfectoidIntegers(prime, precision)
    R = ModP(O, prime)
    exps = [Fraction(0), Fraction(1, prime), Fraction(1, prime ** 2), Fraction(prime - 1, prime)]
    classes = [R.zero(), R.one()] + [R(O.monomial(a, 1)) for a in exps[1:]]
    classes.append(classes[2] + classes[3])

    r = O.monomial(Fraction(1, prime))
    r_shifted = r + O.from_int(prime) * O.monomial(Fraction(1, prime ** 2), prime - 1)
    tally.check("preVal 与代表元无关", R.check_representative_independence(r, r_shifted))

    mul_ok = True
    add_ok = True
    for x in classes:
        for y in classes:
            if not (x * y).is_zero() and R.pre_val(x * y) != R.pre_val(x) * R.pre_val(y):
                mul_ok = False
            if R.pre_val(x + y) > max(R.pre_val(x), R.pre_val(y)):
                add_ok = False
    tally.check("preVal(xy) = preVal(x)preVal(y) (xy ≠ 0)", mul_ok)
    tally.check("preVal(x+y) ≤ max", add_ok)

    threshold_ok = all((R.v_p < R.pre_val(x)) == (not x.is_zero()) for x in classes)
    tally.check("v(p) < preVal(x) ⟺ x ≠ 0", threshold_ok, f"v(p)={R.v_p!r}")

    t = classes[3]
    tally.check("x^p, y^p ≠ 0 ⟹ xy ≠ 0", mul_ne_zero_of_pow_p_ne_zero(t, t))
    return tally.all_passed


def strict_pre_tilt_validation(prime: int, precision: int, config: PrecisionConfig) -> bool:
    """PreTilt(ℤ_p[p^{1/p^∞}], p) 的赋值 + 5-adic 场景"""
    tally = _Tally("pre_tilt")
    O = PerfectoidIntegers(prime, precision)
    A = PreTilt(O, prime, config)
    p_flat = A.flat_power(1)
    first = A.first_nonzero_index(p_flat)
    tally.check("p♭ 的坐标 0 为零但元素非零", p_flat.coeff(0).is_zero() and first == 1, f"first={first}")
    tally.check("val(p♭) = v(p)", A.val(p_flat) == A.mod_p.v_p, f"val={A.val(p_flat)!r}")

    samples = [A.one(), p_flat, A.flat_power(Fraction(1, prime)),
               A.from_mod_p(O.from_terms([(0, 1), (Fraction(1, prime), 1)])),
               A.flat_power(Fraction(1, prime)) + A.flat_power(2)]
    report = A.val.check_axioms(samples)
    tally.check("val 满足赋值公理", report.is_valid, f"errors={len(report.errors)}")
    tally.check("val 下标无关", A.check_val_aux_eq(p_flat, 1, config.check_depth))
    tally.check("val 乘法（下标对齐）", all(A.check_val_mul(f, g) for f in samples for g in samples))

    profile = A.valuation_profile(p_flat, 3)
    tally.check("preVal 剖面", bool(np.all(profile[1:] != 0)) and profile[0] == 0, f"profile={list(profile)}")

    Z5 = PadicIntegers(5, precision)
    A5 = PreTilt(Z5, 5, config)
    ones = A5.element(lambda n: 1)
    tally.check("5-adic: coeff_0([1,1,1,...]) = 1", ones.coeff(0) == A5.mod_p.one())
    tally.check("5-adic: val([1,1,1,...]) = 1", A5.val(ones) == 1)
    return tally.all_passed


def strict_tilt_validation(prime: int, precision: int, config: PrecisionConfig) -> bool:
    tally = _Tally("tilt")
    O = PerfectoidIntegers(prime, precision)
    K = Tilt(O, prime, config)
    p_flat = K(K.pre_tilt.flat_power(1))
    tally.check("(p♭)·(p♭)^{-1} = 1", p_flat * p_flat.inverse() == K.one())
    q = K(K.pre_tilt.flat_power(Fraction(1, prime)))
    tally.check("(p♭/q)·q = p♭", (p_flat / q) * q == p_flat)
    tally.check("a/b + c/d 交叉相乘", p_flat / q + p_flat / q == (p_flat + p_flat) / q)

    other = 2 if prime != 2 else 3
    try:
        Tilt(PadicIntegers(other, precision), prime, config)
        tally.check("v(p) = 1 时拒绝构造 Tilt", False)
    except NotADomainError:
        tally.check("v(p) = 1 时拒绝构造 Tilt", True)
    return tally.all_passed


def run_strict_validation_suite(prime: int = 3, precision: int = 4,
                                config: Optional[PrecisionConfig] = None) -> bool:
    """运行完整的严格验收套件；全部子验收通过才返回 True"""
    config = config or PrecisionConfig()
    stages: Dict[str, Callable[[], bool]] = {
        "perfection": lambda: strict_perfection_validation(prime, config),
        "mod_p": lambda: strict_mod_p_validation(prime, precision),
        "pre_tilt": lambda: strict_pre_tilt_validation(prime, precision, config),
        "tilt": lambda: strict_tilt_validation(prime, precision, config),
    }
    results: Dict[str, bool] = {}
    for i, (name, stage) in enumerate(stages.items(), 1):
        _logger.info("阶段 %d/%d: %s", i, len(stages), name)
        results[name] = stage()

    all_passed = all(results.values())
    for name, passed in results.items():
        _logger.info("%s : %s", name.ljust(12), "✓ PASS" if passed else "✗ FAIL")
    if not all_passed:
        _logger.warning("失败项: %s", ", ".join(k for k, v in results.items() if not v))
    return all_passed


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Perfection / PreTilt / Tilt strict validation suite")
    parser.add_argument("--prime", type=int, default=3, help="residue characteristic p (default: 3)")
    parser.add_argument("--precision", type=int, default=4, help="truncation precision N of O (default: 4)")
    parser.add_argument("--check-depth", type=int, default=8, help="coordinates checked for compatibility (default: 8)")
    parser.add_argument("--search-depth", type=int, default=32, help="bound of the valuation index search and of equality (default: 32)")
    parser.add_argument("--quiet", action="store_true", help="suppress per-check logs")
    args = parser.parse_args(argv)

    _configure_smoke_logging(args.quiet)
    try:
        if not is_prime(args.prime):
            raise PerfectoidError(f"--prime must be prime, got {args.prime}")
        config = PrecisionConfig(check_depth=args.check_depth, search_depth=args.search_depth)
        ok = run_strict_validation_suite(args.prime, args.precision, config)
    except PerfectoidError as ex:
        print(f"[FATAL] {ex}")
        return 1
    print(f"[RESULT] all_passed={int(ok)} prime={args.prime} precision={args.precision}")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
