#!/usr/bin/env python
"""
Run the Tool Djinn suite, or selected test modules, under pytest.

    python scripts/run_tests.py                      # everything in tests/
    python scripts/run_tests.py decoders git_tools   # two modules
    python scripts/run_tests.py decoders -k blame    # extra flags go to pytest
"""

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
TESTS_DIR = PROJECT_ROOT / "tests"


def module_path(name: str) -> Path:
    """`decoders`, `test_decoders` and `test_decoders.py` all name the same file."""
    stem = name[:-3] if name.endswith(".py") else name
    if not stem.startswith("test_"):
        stem = f"test_{stem}"
    return TESTS_DIR / f"{stem}.py"


def main(argv: list) -> int:
    modules, pytest_flags = [], []
    for arg in argv:
        # Everything from the first flag onwards belongs to pytest
        (pytest_flags if pytest_flags or arg.startswith("-") else modules).append(arg)

    targets = [module_path(name) for name in modules] or [TESTS_DIR]
    missing = [str(t) for t in targets if not t.exists()]
    if missing:
        print(f"No such test module: {', '.join(missing)}", file=sys.stderr)
        return 2

    cmd = [sys.executable, "-m", "pytest", *map(str, targets), "-v", "--tb=short", *pytest_flags]
    print("$", " ".join(cmd))
    return subprocess.run(cmd, cwd=PROJECT_ROOT).returncode


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
