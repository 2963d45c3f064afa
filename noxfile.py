"""
Nox sessions for abigen.

Sessions:
  - lint   : ruff + black + mypy over the package
  - unit   : the pytest suite

Pass extra args to pytest like:
  nox -s unit -- -k "multi and not cli" -vv
"""

from __future__ import annotations

import nox

nox.options.reuse_venv = True
nox.options.stop_on_first_error = False

PY_PATHS = ["abigen", "conftest.py", "noxfile.py"]

TEST_PYTHONS = ["3.10", "3.11", "3.12"]


@nox.session(name="lint", python="3.11")
def lint(session: nox.Session) -> None:
    """Static analysis: ruff, black (check), mypy."""
    session.run("python", "-m", "pip", "install", "--upgrade", "pip", silent=True)
    session.install("ruff>=0.6.0", "black>=24.3.0", "mypy>=1.10.0", "types-requests")
    session.install("-e", ".")

    session.run("ruff", "check", *PY_PATHS)
    session.run("black", "--check", *PY_PATHS)
    session.run(
        "mypy",
        "--pretty",
        "--show-error-codes",
        "--ignore-missing-imports",
        "abigen",
    )


@nox.session(name="unit", python=TEST_PYTHONS)
def unit(session: nox.Session) -> None:
    """Run the unit tests against an editable install."""
    session.env.setdefault("PYTHONUNBUFFERED", "1")
    session.install("-e", ".[test]")
    session.run("pytest", *session.posargs)
