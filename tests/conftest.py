"""Custom pytest configuration, fixtures and reporting for matchcore tests."""
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Set BEFORE importing matchcore: module loggers are configured at import time
os.environ.setdefault("LOG_OUTPUT", "none")

# Add the source tree to the path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent.resolve() / "src"))

import matchcore.core.config as config_module  # noqa: E402
import matchcore.pattern_cache as pattern_cache_module  # noqa: E402
from matchcore.engine import RegexEngine, reset_default_engine  # noqa: E402
from matchcore.scratch import MatchScratch  # noqa: E402

console = Console()

_MATCHCORE_ENV_VARS = (
    "MATCHCORE_CONFIG",
    "MATCHCORE_MATCH_TIMEOUT",
    "MATCHCORE_CACHE_SIZE",
    "MATCHCORE_LOG_LEVEL",
    "MATCHCORE_LOG_DIR",
)


class ReplaceTestReporter:
    """Collects replace_all results and prints a summary table of failures."""

    def __init__(self):
        self.failures: list[tuple[str, str, str, str, str]] = []
        self.passes = 0
        self.total = 0

    def record_result(self, test_name: str, pattern: str, subject: str, expected: str, actual: str, passed: bool):
        self.total += 1
        if passed:
            self.passes += 1
        else:
            self.failures.append((test_name, pattern, subject, expected, actual))

    def print_summary(self):
        if not self.failures:
            console.print(
                Panel.fit(
                    f"[bold green]All {self.total} replacement checks passed[/bold green]",
                    title="Replacement Results",
                    border_style="green",
                )
            )
            return

        table = Table(title="Replacement Failures", show_header=True, header_style="bold magenta")
        table.add_column("Test", style="cyan", no_wrap=False)
        table.add_column("Pattern", style="blue")
        table.add_column("Subject", style="yellow")
        table.add_column("Expected", style="green")
        table.add_column("Actual", style="red")

        for test_name, pattern, subject, expected, actual in self.failures:
            table.add_row(test_name.split("::")[-1], pattern, subject, expected, actual)

        console.print(table)

        fail_count = len(self.failures)
        console.print(
            Panel.fit(
                f"[bold red]Failed:[/bold red] {fail_count} | [bold green]Passed:[/bold green] {self.passes} | [bold]Total:[/bold] {self.total}",
                title="Summary",
                border_style="red",
            )
        )


# Global reporter instance
reporter = ReplaceTestReporter()


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Hook to capture replacement results for our custom reporter."""
    outcome = yield
    report = outcome.get_result()

    if report.when != "call":
        return
    for prop_name, prop_value in item.user_properties:
        if prop_name == "replace_test":
            reporter.record_result(
                item.nodeid,
                prop_value["pattern"],
                prop_value["subject"],
                prop_value["expected"],
                prop_value["actual"],
                report.outcome == "passed",
            )


def pytest_sessionfinish(session, exitstatus):
    """Print our custom summary at the end of the test session."""
    if reporter.total > 0:
        console.print("\n")
        reporter.print_summary()


def assert_replaced(pattern, subject, expected, actual, item=None):
    """Assert a replacement result, showing a rich panel on mismatch."""
    if item is not None:
        item.user_properties.append(
            ("replace_test", {"pattern": repr(pattern), "subject": repr(subject), "expected": repr(expected), "actual": repr(actual)})
        )

    if expected != actual:
        console.print(
            Panel.fit(
                f"[bold]Pattern:[/bold] {pattern!r}\n"
                f"[bold]Subject:[/bold] {subject!r}\n"
                f"[bold green]Expected:[/bold green] {expected!r}\n"
                f"[bold red]Actual:[/bold red] {actual!r}",
                title="Replacement mismatch",
                border_style="red",
            )
        )

    assert expected == actual, f"Replacing {pattern!r} in {subject!r} should give {expected!r} but got {actual!r}"


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """Fresh configuration, default engine and global cache for every test."""
    for name in _MATCHCORE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_config_loader", None)
    monkeypatch.setattr(pattern_cache_module, "_global_cache", None)
    reset_default_engine()
    yield
    reset_default_engine()


@pytest.fixture
def engine():
    """A private engine instance, independent of configuration."""
    return RegexEngine()


class CountingScratch(MatchScratch):
    """MatchScratch double that counts allocations."""

    allocations = 0

    def __init__(self, groups: int):
        super().__init__(groups)
        type(self).allocations += 1


@pytest.fixture
def counting_scratch(monkeypatch):
    """Make matchers allocate CountingScratch; returns the class for inspection."""
    CountingScratch.allocations = 0
    monkeypatch.setattr("matchcore.matcher.MatchScratch", CountingScratch)
    return CountingScratch


@pytest.fixture
def check_replace(request):
    """``assert_replaced`` bound to the running test, feeding the summary reporter."""

    def _check(pattern, subject, expected, actual):
        assert_replaced(pattern, subject, expected, actual, request.node)

    return _check
