import json
import threading

import pytest
from PySide6.QtCore import QEventLoop, QThreadPool, QTimer

from brewgui.application.brew_controller import BrewController
from brewgui.core.brew_types import (
    BatchReport,
    Failure,
    FormulaDetail,
    OperationOutcome,
    PackageSummary,
    StatsSnapshot,
    Success,
)


class _ScriptedExecutor:
    def __init__(
        self,
        outcomes: dict[tuple[str, ...], OperationOutcome] | None = None,
        available: bool = True,
    ) -> None:
        self.outcomes = outcomes or {}
        self.available = available
        self.calls: list[tuple[str, ...]] = []

    def run(self, args) -> OperationOutcome:
        args = tuple(args)
        self.calls.append(args)
        return self.outcomes.get(args, Success(output=""))

    def probe_available(self) -> bool:
        return self.available


class _InlinePool:
    """Runs tasks immediately on the calling thread."""

    def __init__(self) -> None:
        self.started: list = []

    def start(self, runnable) -> None:
        self.started.append(runnable)
        runnable.run()


def _installed_json(*names: str) -> str:
    return json.dumps(
        {"formulae": [{"name": n, "versions": {"stable": "1.0"}} for n in names]}
    )


def _controller(qapp, executor: _ScriptedExecutor) -> BrewController:
    return BrewController(executor=executor, pool=_InlinePool())


def _record(signal, arity: int = 1) -> list:
    captured: list = []
    if arity == 1:
        signal.connect(lambda value: captured.append(value))
    elif arity == 2:
        signal.connect(lambda a, b: captured.append((a, b)))
    else:
        signal.connect(lambda a, b, c: captured.append((a, b, c)))
    return captured


@pytest.fixture
def installed_executor() -> _ScriptedExecutor:
    return _ScriptedExecutor(
        {
            ("info", "--json=v2", "--installed"): Success(
                output=_installed_json("alpha", "beta", "gamma")
            ),
        }
    )


def test_refresh_installed_fills_catalog(qapp, installed_executor) -> None:
    controller = _controller(qapp, installed_executor)
    loaded = _record(controller.installed_loaded)
    busy = _record(controller.busy_changed)
    finished = _record(controller.job_finished, arity=2)

    controller.refresh_installed()

    assert [p.name for p in loaded[0]] == ["alpha", "beta", "gamma"]
    assert controller.installed.resolve(2) == "gamma"
    assert busy == [True, False]
    assert finished == [("brew info --installed", True)]
    assert controller.is_busy() is False


def test_uninstall_at_removes_row_and_shifts_indices(qapp, installed_executor) -> None:
    controller = _controller(qapp, installed_executor)
    controller.refresh_installed()
    outcomes = _record(controller.operation_finished, arity=2)

    controller.uninstall_at(1)

    assert installed_executor.calls[-1] == ("uninstall", "beta")
    assert outcomes == [("brew uninstall beta", Success(output=""))]
    assert controller.installed.names() == ["alpha", "gamma"]
    assert controller.installed.resolve(1) == "gamma"
    assert controller.installed.resolve(2) is None


def test_uninstall_failure_reports_raw_detail_and_keeps_row(
    qapp, installed_executor
) -> None:
    installed_executor.outcomes[("uninstall", "alpha")] = Failure(
        detail="Error: Refusing to uninstall alpha", returncode=1
    )
    controller = _controller(qapp, installed_executor)
    controller.refresh_installed()
    errors = _record(controller.error)
    finished = _record(controller.job_finished, arity=2)

    controller.uninstall_at(0)

    assert errors == [
        "[error] brew uninstall alpha failed: Error: Refusing to uninstall alpha"
    ]
    assert finished == [("brew uninstall alpha", False)]
    assert controller.installed.names() == ["alpha", "beta", "gamma"]


def test_operation_on_unresolvable_row_only_logs(qapp) -> None:
    executor = _ScriptedExecutor()
    controller = _controller(qapp, executor)
    logs = _record(controller.log)

    controller.uninstall_at(0)
    controller.install_at(3)
    controller.load_detail_at(-1)

    assert executor.calls == []
    assert logs == [
        "[info] select a package to uninstall",
        "[info] select a package to install",
        "[info] select a package to show",
    ]


def test_search_marks_installed_results(qapp, installed_executor) -> None:
    installed_executor.outcomes[("search", "--formula", "a")] = Success(
        output="==> Formulae\nalpha\nalpaca\n"
    )
    controller = _controller(qapp, installed_executor)
    controller.refresh_installed()
    results = _record(controller.searched)

    controller.search("a")

    assert results == [
        [
            PackageSummary(name="alpha", installed=True),
            PackageSummary(name="alpaca", installed=False),
        ]
    ]


def test_search_without_matches_is_empty_not_error(qapp) -> None:
    executor = _ScriptedExecutor(
        {
            ("search", "--formula", "zzz"): Failure(
                detail="Error: No formulae or casks found for zzz.", returncode=1
            )
        }
    )
    controller = _controller(qapp, executor)
    results = _record(controller.searched)
    errors = _record(controller.error)

    controller.search("zzz")

    assert results == [[]]
    assert errors == []


def test_install_at_marks_result_and_refreshes_installed(qapp) -> None:
    executor = _ScriptedExecutor(
        {
            ("search", "--formula"): Success(output="alpha\nbeta\n"),
            ("info", "--json=v2", "--installed"): Success(output=_installed_json("beta")),
        }
    )
    controller = _controller(qapp, executor)
    controller.search("")

    controller.install_at(1)

    assert ("install", "beta") in executor.calls
    assert executor.calls[-1] == ("info", "--json=v2", "--installed")
    assert controller.search_results.summary_at(1) == PackageSummary(
        name="beta", installed=True
    )
    assert controller.installed.names() == ["beta"]


def test_load_detail_emits_record(qapp) -> None:
    executor = _ScriptedExecutor(
        {
            ("search", "--formula"): Success(output="alpha\n"),
            ("info", "--json=v2", "alpha"): Success(output=_installed_json("alpha")),
        }
    )
    controller = _controller(qapp, executor)
    controller.search("")
    details = _record(controller.detail_loaded)

    controller.load_detail_at(0)

    assert isinstance(details[0], FormulaDetail)
    assert details[0].name == "alpha"


def test_query_failure_is_reported(qapp) -> None:
    executor = _ScriptedExecutor(
        {
            ("info", "--json=v2", "--installed"): Failure(
                detail="Error: broken", returncode=1
            )
        }
    )
    controller = _controller(qapp, executor)
    errors = _record(controller.error)
    finished = _record(controller.job_finished, arity=2)

    controller.refresh_installed()

    assert errors == ["[error] Brew command failed: Error: broken"]
    assert finished == [("brew info --installed", False)]
    assert len(controller.installed) == 0


def test_upgrade_checked_runs_batch_and_keeps_failed_items(qapp) -> None:
    executor = _ScriptedExecutor(
        {
            ("outdated", "--formula"): Success(output="a\nb\nc\nd\n"),
            ("upgrade", "b"): Failure(detail="Error: b conflicts", returncode=1),
        }
    )
    controller = _controller(qapp, executor)
    controller.refresh_outdated()
    for row in range(3):
        controller.outdated.set_checked(row, True)
    progress = _record(controller.batch_progress, arity=3)
    reports = _record(controller.batch_finished)
    outdated = _record(controller.outdated_loaded)
    errors = _record(controller.error)

    controller.upgrade_checked()

    assert executor.calls[-3:] == [("upgrade", "a"), ("upgrade", "b"), ("upgrade", "c")]
    assert progress == [("a", 1, 3), ("b", 2, 3), ("c", 3, 3)]
    report = reports[0]
    assert isinstance(report, BatchReport)
    assert report.succeeded == frozenset({"a", "c"})
    assert report.failed == [("b", "Error: b conflicts")]
    assert outdated == [["b", "d"]]
    assert controller.outdated.checked_names() == ["b"]
    assert errors == ["[error] brew upgrade b failed: Error: b conflicts"]


def test_upgrade_checked_without_selection_does_nothing(qapp) -> None:
    executor = _ScriptedExecutor({("outdated", "--formula"): Success(output="a\n")})
    controller = _controller(qapp, executor)
    controller.refresh_outdated()
    logs = _record(controller.log)

    controller.upgrade_checked()

    assert executor.calls == [("outdated", "--formula")]
    assert logs == ["[info] no packages selected"]


def test_upgrade_at_drops_row_on_success(qapp) -> None:
    executor = _ScriptedExecutor({("outdated", "--formula"): Success(output="a\nb\n")})
    controller = _controller(qapp, executor)
    controller.refresh_outdated()

    controller.upgrade_at(0)

    assert executor.calls[-1] == ("upgrade", "a")
    assert controller.outdated.names() == ["b"]


def test_update_tool_logs_progress_from_stderr(qapp) -> None:
    executor = _ScriptedExecutor(
        {("update",): Success(output="Already up-to-date.\n", errors="==> Updating\n")}
    )
    controller = _controller(qapp, executor)
    logs = _record(controller.log)

    controller.update_tool()

    assert logs[-2:] == ["Already up-to-date.", "==> Updating"]


def test_check_tool_reports_missing_brew(qapp) -> None:
    controller = _controller(qapp, _ScriptedExecutor(available=False))
    checked = _record(controller.tool_checked)
    errors = _record(controller.error)

    controller.check_tool()

    assert checked == [False]
    assert errors == ["[error] Homebrew is not installed or not in PATH"]


def test_refresh_stats_emits_snapshot(qapp) -> None:
    executor = _ScriptedExecutor({("tap",): Success(output="homebrew/core\n")})
    controller = _controller(qapp, executor)
    stats = _record(controller.stats_loaded)

    controller.refresh_stats()

    assert stats == [StatsSnapshot(taps=1)]


class _ThreadRecordingExecutor(_ScriptedExecutor):
    def __init__(self, outcomes: dict[tuple[str, ...], OperationOutcome]) -> None:
        super().__init__(outcomes)
        self.threads: list[threading.Thread] = []

    def run(self, args) -> OperationOutcome:
        self.threads.append(threading.current_thread())
        return super().run(args)


def test_refresh_installed_runs_on_pool_and_delivers_on_caller_thread(qapp) -> None:
    executor = _ThreadRecordingExecutor(
        {
            ("info", "--json=v2", "--installed"): Success(
                output=_installed_json("alpha", "beta")
            ),
        }
    )
    pool = QThreadPool()
    pool.setMaxThreadCount(2)
    controller = BrewController(executor=executor, pool=pool)

    delivered_on: list[threading.Thread] = []
    controller.installed_loaded.connect(
        lambda _packages: delivered_on.append(threading.current_thread())
    )
    loop = QEventLoop()
    controller.busy_changed.connect(lambda busy: None if busy else loop.quit())
    QTimer.singleShot(5000, loop.quit)

    controller.refresh_installed()
    loop.exec()
    pool.waitForDone()

    assert len(executor.threads) == 1
    assert executor.threads[0] is not threading.main_thread()
    assert delivered_on == [threading.main_thread()]
    assert controller.installed.names() == ["alpha", "beta"]
    assert controller.is_busy() is False
