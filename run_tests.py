"""Test runner script for the Nova foundation runtime.

Usage:
    python run_tests.py              # run the suite
    python run_tests.py --coverage   # run with coverage for the runtime packages
    python run_tests.py -k pipeline  # extra arguments are passed to pytest
"""
import sys
import subprocess

PACKAGES = ("core", "app", "config", "events", "logger")


def _banner(title: str) -> None:
    print("=" * 70)
    print(title)
    print("=" * 70)
    print()


def run_tests(extra_args=None, coverage: bool = False) -> int:
    """Run the pytest suite, optionally collecting coverage."""
    _banner("Running Nova Foundation Tests" + (" with Coverage" if coverage else ""))

    cmd = [sys.executable, "-m", "pytest", "tests/", "-v", "--tb=short"]
    if coverage:
        cmd += [f"--cov={package}" for package in PACKAGES]
        cmd += ["--cov-report=term-missing"]
    cmd += list(extra_args or [])

    try:
        return subprocess.run(cmd, check=False).returncode
    except FileNotFoundError:
        print("ERROR: pytest not found. Install the test extra: pip install -e .[test]")
        return 1


if __name__ == "__main__":
    args = sys.argv[1:]
    with_coverage = "--coverage" in args or "-c" in args
    passthrough = [arg for arg in args if arg not in ("--coverage", "-c")]
    sys.exit(run_tests(passthrough, coverage=with_coverage))
