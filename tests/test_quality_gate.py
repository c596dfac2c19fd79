"""Tests for the local quality gate runner."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from scripts import quality_gate


def test_plan_keeps_fixed_order_and_passes_keyword() -> None:
    plan = quality_gate.plan(["tests", "lint"], "py", keyword="refresh")

    assert list(plan) == ["lint", "tests"]
    assert plan["tests"] == [["py", "-m", "pytest", "-q", "tests", "-k", "refresh"]]


def test_stops_at_first_failing_gate() -> None:
    with patch("scripts.quality_gate.subprocess.run") as run:
        run.return_value = MagicMock(returncode=3)
        code = quality_gate.main(["all", "--python-bin", "py"])

    assert code == 3
    run.assert_called_once()
    assert run.call_args.args[0][:4] == ["py", "-m", "ruff", "check"]


def test_dry_run_executes_nothing(capsys) -> None:
    with patch("scripts.quality_gate.subprocess.run") as run:
        code = quality_gate.main(["typecheck", "--dry-run", "--python-bin", "py"])

    assert code == 0
    run.assert_not_called()
    assert "mypy --config-file pyproject.toml" in capsys.readouterr().out


def test_unknown_gate_is_rejected() -> None:
    with pytest.raises(SystemExit):
        quality_gate.main(["deploy"])
