import pytest

from perfectoid_smoke import (
    main,
    run_strict_validation_suite,
    strict_mod_p_validation,
    strict_perfection_validation,
)
from ring_core import PrecisionConfig


@pytest.mark.parametrize("prime", [2, 3])
def test_suite_passes(prime):
    assert run_strict_validation_suite(prime, 4, PrecisionConfig(check_depth=6, search_depth=16))


def test_stages_pass_for_five(config):
    assert strict_perfection_validation(5, config)
    assert strict_mod_p_validation(5, 3)


def test_cli_reports_success(capsys):
    assert main(["--quiet", "--check-depth", "6", "--search-depth", "16"]) == 0
    assert "[RESULT] all_passed=1" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [
    ["--quiet", "--prime", "4"],
    ["--quiet", "--check-depth", "0"],
    ["--quiet", "--check-depth", "9", "--search-depth", "4"],
])
def test_cli_rejects_bad_arguments(argv, capsys):
    assert main(argv) == 1
    assert "[FATAL]" in capsys.readouterr().out
