import os
import time
from datetime import datetime
from pathlib import Path

import pytest

from models import Document, Site


class _ProgressReporter:
    """Pytest plugin that prints per-test start and end markers with timing."""

    def __init__(self):
        self._terminal = None
        self._starts: dict[str, float] = {}

    @pytest.hookimpl(tryfirst=True)
    def pytest_sessionstart(self, session: pytest.Session) -> None:
        if self._terminal is None:
            self._terminal = session.config.pluginmanager.get_plugin("terminalreporter")

    @pytest.hookimpl
    def pytest_runtest_logstart(self, nodeid: str, location) -> None:
        if self._terminal is None:
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        self._starts[nodeid] = time.monotonic()
        self._terminal.write_line(f"[{timestamp}] RUN    {nodeid}")

    @pytest.hookimpl
    def pytest_runtest_logreport(self, report: pytest.TestReport):
        if self._terminal is None or report.when != "call":
            return
        timestamp = datetime.now().strftime("%H:%M:%S")
        duration: float | None = None
        if report.nodeid in self._starts:
            duration = time.monotonic() - self._starts.pop(report.nodeid)
        duration_text = f" ({duration:.2f}s)" if duration is not None else ""
        outcome = report.outcome.upper()
        self._terminal.write_line(f"[{timestamp}] {outcome:6} {report.nodeid}{duration_text}")


def _progress_enabled(config: pytest.Config) -> bool:
    if config.getoption("progress", default=False):
        return True
    env_value = os.environ.get("PYTEST_PROGRESS", "")
    return env_value.lower() in {"1", "true", "yes", "on"}


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("docversions")
    group.addoption(
        "--progress",
        action="store_true",
        help="Print test start/finish timestamps and durations to aid debugging long runs.",
    )


def pytest_configure(config: pytest.Config) -> None:
    if _progress_enabled(config):
        reporter = _ProgressReporter()
        config.pluginmanager.register(reporter, "docversions-progress-reporter")


def make_doc(url: str, path: str | None = None) -> Document:
    return Document(url=url, path=path or f"_docs{url.rstrip('/') or '/index'}.md")


@pytest.fixture
def intro_docs() -> list[Document]:
    return [
        make_doc("/docs/1.0/intro"),
        make_doc("/docs/2.0/intro"),
        make_doc("/docs/2.1/intro"),
    ]


@pytest.fixture
def site(tmp_path: Path, intro_docs: list[Document]) -> Site:
    destination = tmp_path / "_site"
    destination.mkdir()
    return Site(
        documents=[
            *intro_docs,
            make_doc("/docs/2.1/setup/"),
            make_doc("/docs/1.0/setup/"),
            make_doc("/api/3.0/reference"),
            make_doc("/about"),
        ],
        data={"versioned_root_labels": {"/docs/": "Documentation"}},
        destination=destination,
    )
