"""Local CI for HeadCatalog: ruff, mypy and the pytest suite.

    python scripts/quality_gate.py            # every gate, stops at the first failure
    python scripts/quality_gate.py tests -k refresh
    python scripts/quality_gate.py --dry-run  # print the commands only
"""
from __future__ import annotations

import argparse
import subprocess
import sys
from typing import Dict, List, Sequence

PACKAGE = "headcatalog"

LINT_TARGETS: List[str] = [PACKAGE, "tests", "scripts"]

# Only the layers without FastAPI glue are type-checked.
TYPECHECK_TARGETS: List[str] = [
    f"{PACKAGE}/core",
    f"{PACKAGE}/integrations/heads",
]

GATE_ORDER = ("lint", "typecheck", "tests")


def lint_commands(python_bin: str) -> List[List[str]]:
    return [
        [python_bin, "-m", "ruff", "check", *LINT_TARGETS],
        [python_bin, "-m", "ruff", "format", "--check", *LINT_TARGETS],
    ]


def typecheck_commands(python_bin: str) -> List[List[str]]:
    return [[python_bin, "-m", "mypy", "--config-file", "pyproject.toml", *TYPECHECK_TARGETS]]


def pytest_commands(python_bin: str, keyword: str = "") -> List[List[str]]:
    cmd = [python_bin, "-m", "pytest", "-q", "tests"]
    if keyword:
        cmd += ["-k", keyword]
    return [cmd]


def plan(gates: Sequence[str], python_bin: str, keyword: str = "") -> Dict[str, List[List[str]]]:
    """Commands per gate, in the fixed lint -> typecheck -> tests order."""
    builders = {
        "lint": lambda: lint_commands(python_bin),
        "typecheck": lambda: typecheck_commands(python_bin),
        "tests": lambda: pytest_commands(python_bin, keyword),
    }
    return {gate: builders[gate]() for gate in GATE_ORDER if gate in gates}


def _run(cmd: Sequence[str]) -> int:
    print(f"$ {' '.join(cmd)}")
    return subprocess.run(cmd, check=False).returncode


def main(argv: Sequence[str] = ()) -> int:
    parser = argparse.ArgumentParser(description="Run the HeadCatalog quality gates.")
    parser.add_argument(
        "gates",
        nargs="*",
        default=None,
        help="Gates to run: lint, typecheck, tests or all (default: all).",
    )
    parser.add_argument("-k", dest="keyword", default="", help="pytest -k expression for the tests gate.")
    parser.add_argument("--dry-run", action="store_true", help="Print the commands without running them.")
    parser.add_argument(
        "--python-bin",
        default=sys.executable,
        help="Python executable to run commands with.",
    )
    args = parser.parse_args(list(argv) or None)

    selected = args.gates or ["all"]
    unknown = sorted(set(selected) - {*GATE_ORDER, "all"})
    if unknown:
        parser.error(f"unknown gate(s): {', '.join(unknown)}")
    gates = GATE_ORDER if "all" in selected else selected
    for gate, commands in plan(gates, args.python_bin, args.keyword).items():
        print(f"== {gate} ==")
        for cmd in commands:
            if args.dry_run:
                print(f"$ {' '.join(cmd)}")
                continue
            code = _run(cmd)
            if code != 0:
                print(f"Gate '{gate}' failed (exit {code})")
                return code
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
