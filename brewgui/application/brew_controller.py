from collections.abc import Callable, Iterable
from dataclasses import replace

from PySide6.QtCore import QObject, QThreadPool, Signal

from brewgui.application.operation_coordinator import OperationCoordinator
from brewgui.application.package_queries import PackageQueries
from brewgui.application.stats_aggregator import StatsAggregator
from brewgui.core.brew_errors import NotAvailable
from brewgui.core.brew_line_parser import sanitize_output
from brewgui.core.brew_types import BatchReport, Failure, OperationOutcome, PackageSummary
from brewgui.core.package_catalog import PackageCatalog
from brewgui.infra.command_executor import BrewExecutor, CommandExecutor
from brewgui.infra.qt_tasks import FunctionTask, TaskSignals
from brewgui.infra.settings import BrewSettings


class BrewController(QObject):
    """Orchestrates brew commands and exposes results via Qt signals.

    Every request runs on a worker of a bounded thread pool. Results come back
    through queued signals, and the catalogs are only touched in those handlers,
    i.e. on the thread that owns the controller.
    """

    log = Signal(str)
    error = Signal(str)
    busy_changed = Signal(bool)
    job_started = Signal(str)
    job_finished = Signal(str, bool)  # label, succeeded
    tool_checked = Signal(bool)
    installed_loaded = Signal(object)  # list[PackageSummary]
    searched = Signal(object)  # list[PackageSummary]
    detail_loaded = Signal(object)  # FormulaDetail
    outdated_loaded = Signal(object)  # list[str]
    stats_loaded = Signal(object)  # StatsSnapshot
    operation_finished = Signal(str, object)  # label, OperationOutcome
    batch_progress = Signal(str, int, int)  # name, position, total
    batch_finished = Signal(object)  # BatchReport

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        settings: BrewSettings | None = None,
        pool: QThreadPool | None = None,
        parent: QObject | None = None,
    ):
        """Initializes the controller.

        Args:
            executor: brew runner. Defaults to a `BrewExecutor` built from settings.
            settings: Runtime settings. Defaults to `BrewSettings()`.
            pool: Thread pool for blocking work. Defaults to a private pool sized by
                `settings.max_workers`.
            parent: Optional Qt parent object.
        """
        super().__init__(parent)
        settings = settings or BrewSettings()
        self._executor = executor or BrewExecutor(
            settings.executable, auto_update=settings.auto_update
        )
        self._queries = PackageQueries(self._executor, settings.json_format)
        self._coordinator = OperationCoordinator(self._executor)
        self._stats = StatsAggregator(self._executor, settings.stats_workers)

        if pool is None:
            pool = QThreadPool(self)
            pool.setMaxThreadCount(settings.max_workers)
        self._pool = pool

        self._tasks: set[FunctionTask] = set()
        self._names_in_flight: set[str] = set()
        self._search_job_id = 0

        self.installed = PackageCatalog()
        self.search_results = PackageCatalog()
        self.outdated = PackageCatalog()

    def is_busy(self) -> bool:
        return bool(self._tasks)

    # ---- Queries
    def check_tool(self) -> None:
        """Probes `brew --version` once; emits `tool_checked`."""
        self._start_job(
            label="brew --version",
            fn=lambda _signals: self._executor.probe_available(),
            on_finished=self._on_tool_checked,
            announce=False,
        )

    def refresh_installed(self) -> None:
        """Loads installed formulae via `brew info --json=v2 --installed`."""
        self._start_job(
            label="brew info --installed",
            fn=lambda _signals: self._queries.installed_packages(),
            on_finished=self._on_installed_finished,
        )

    def search(self, term: str) -> None:
        """Searches formulae; an empty term lists all of them."""
        self._search_job_id += 1
        job_id = self._search_job_id
        term = term.strip()
        self._start_job(
            label=f"brew search {term}".rstrip(),
            fn=lambda _signals: self._queries.search(term),
            on_finished=lambda names, jid=job_id: self._on_search_finished(jid, names),
        )

    def load_detail_at(self, index: int) -> None:
        """Loads detail for the search result at row `index`."""
        name = self._require(self.search_results, index, "show")
        if name:
            self.load_detail(name)

    def load_detail(self, name: str) -> None:
        self._start_job(
            label=f"brew info {name}",
            fn=lambda _signals: self._queries.formula_detail(name),
            on_finished=self._on_detail_finished,
            announce=False,
        )

    def refresh_outdated(self) -> None:
        self._start_job(
            label="brew outdated",
            fn=lambda _signals: self._queries.outdated_names(),
            on_finished=self._on_outdated_finished,
        )

    def refresh_stats(self) -> None:
        self._start_job(
            label="brew stats",
            fn=lambda _signals: self._stats.snapshot(),
            on_finished=self._on_stats_finished,
            announce=False,
        )

    # ---- Operations
    def install_at(self, index: int) -> None:
        """Installs the search result at row `index`."""
        name = self._require(self.search_results, index, "install")
        if name:
            self._run_operation(
                f"brew install {name}",
                name,
                lambda: self._coordinator.install(name),
                on_success=lambda: self._after_install(name),
            )

    def uninstall_at(self, index: int) -> None:
        """Uninstalls the installed formula at row `index`."""
        name = self._require(self.installed, index, "uninstall")
        if name:
            self._run_operation(
                f"brew uninstall {name}",
                name,
                lambda: self._coordinator.uninstall(name),
                on_success=lambda: self._after_uninstall(name),
            )

    def upgrade_at(self, index: int) -> None:
        """Upgrades the outdated formula at row `index`."""
        name = self._require(self.outdated, index, "upgrade")
        if name:
            self._run_operation(
                f"brew upgrade {name}",
                name,
                lambda: self._coordinator.upgrade_one(name),
                on_success=lambda: self._drop_outdated([name]),
            )

    def upgrade_all(self) -> None:
        self._run_operation(
            "brew upgrade",
            None,
            self._coordinator.upgrade_all,
            on_success=self.refresh_outdated,
        )

    def update_tool(self) -> None:
        """Runs `brew update`."""
        self._run_operation("brew update", None, self._coordinator.update_tool)

    def upgrade_checked(self) -> None:
        """Upgrades every checked outdated formula, one after another."""
        names = self.outdated.checked_names()
        if not names:
            self.log.emit("[info] no packages selected")
            return
        busy = self._names_in_flight.intersection(names)
        if busy:
            self.log.emit(f"[info] already running: {', '.join(sorted(busy))}")
            return

        self._names_in_flight.update(names)

        def upgrade(signals: TaskSignals) -> BatchReport:
            return self._coordinator.upgrade_many(names, on_progress=signals.progress.emit)

        task = self._start_job(
            label=f"brew upgrade ({len(names)} selected)",
            fn=upgrade,
            on_finished=lambda report: self._on_batch_finished(names, report),
            on_failed=lambda: self._names_in_flight.difference_update(names),
            defer=True,
        )
        # Connect progress before the task can start emitting.
        task.signals.progress.connect(self.batch_progress)
        task.signals.progress.connect(self._on_batch_progress)
        self._pool.start(task)

    # ---- Plumbing
    def _require(self, catalog: PackageCatalog, index: int, action: str) -> str | None:
        """Resolves a row to a name or logs a hint message."""
        name = catalog.resolve(index)
        if name is None:
            self.log.emit(f"[info] select a package to {action}")
        return name

    def _start_job(
        self,
        label: str,
        fn: Callable[[TaskSignals], object],
        on_finished: Callable[[object], bool | None],
        announce: bool = True,
        on_failed: Callable[[], None] | None = None,
        defer: bool = False,
    ) -> FunctionTask:
        if announce:
            self.log.emit(f"$ {label}")
            self.log.emit("[running] ...")

        task = FunctionTask(label, fn)
        task.setAutoDelete(False)
        task.signals.finished.connect(
            lambda result, t=task: self._on_task_finished(t, result, on_finished)
        )
        task.signals.failed.connect(
            lambda message, t=task: self._on_task_failed(t, message, on_failed)
        )

        if not self._tasks:
            self.busy_changed.emit(True)
        self._tasks.add(task)
        self.job_started.emit(label)

        if not defer:
            self._pool.start(task)
        return task

    def _finish_task(self, task: FunctionTask) -> None:
        self._tasks.discard(task)
        if not self._tasks:
            self.busy_changed.emit(False)

    def _on_task_finished(
        self,
        task: FunctionTask,
        result: object,
        on_finished: Callable[[object], bool | None],
    ) -> None:
        """Delivers a worker result; handlers return False to flag a failure."""
        self._finish_task(task)
        ok = on_finished(result)
        self.job_finished.emit(task.label, ok is not False)

    def _on_task_failed(
        self,
        task: FunctionTask,
        message: str,
        on_failed: Callable[[], None] | None,
    ) -> None:
        self._finish_task(task)
        if on_failed is not None:
            on_failed()
        self.error.emit(f"[error] {message}")
        self.job_finished.emit(task.label, False)

    def _run_operation(
        self,
        label: str,
        name: str | None,
        fn: Callable[[], OperationOutcome],
        on_success: Callable[[], None] | None = None,
    ) -> None:
        """Runs a single install/uninstall/upgrade/update and reports the outcome."""
        names = [name] if name else []
        if name in self._names_in_flight:
            self.log.emit(f"[info] already running: {name}")
            return
        self._names_in_flight.update(names)

        self._start_job(
            label=label,
            fn=lambda _signals: fn(),
            on_finished=lambda outcome: self._on_operation_finished(
                label, names, outcome, on_success
            ),
            on_failed=lambda: self._names_in_flight.difference_update(names),
        )

    def _on_operation_finished(
        self,
        label: str,
        names: list[str],
        outcome: object,
        on_success: Callable[[], None] | None,
    ) -> bool:
        self._names_in_flight.difference_update(names)
        if isinstance(outcome, Failure):
            # brew's own message is the most useful thing we can show.
            self.error.emit(f"[error] {label} failed: {outcome.detail}")
        else:
            self._emit_output(outcome.output)
            self._emit_output(outcome.errors)

        self.operation_finished.emit(label, outcome)
        if outcome.ok and on_success is not None:
            on_success()
        return outcome.ok

    def _emit_output(self, text: str) -> None:
        """Emits non-empty output to the log signal."""
        output = sanitize_output(text).rstrip()
        if output:
            self.log.emit(output)

    # ---- Result handlers (caller thread)
    def _on_tool_checked(self, available: object) -> bool:
        ok = bool(available)
        if not ok:
            self.error.emit(f"[error] {NotAvailable()}")
        self.tool_checked.emit(ok)
        return ok

    def _on_installed_finished(self, packages: object) -> None:
        self.installed.replace(packages)
        self.installed_loaded.emit(self.installed.summaries())
        self.log.emit(f"[loaded] {len(self.installed)} packages")

    def _on_search_finished(self, job_id: int, names: object) -> None:
        if job_id != self._search_job_id:
            return
        installed = set(self.installed.names())
        self.search_results.replace(
            PackageSummary(name=name, installed=name in installed) for name in names
        )
        self.searched.emit(self.search_results.summaries())
        self.log.emit(f"[found] {len(self.search_results)} formulae")

    def _on_detail_finished(self, detail: object) -> None:
        self.detail_loaded.emit(detail)

    def _on_stats_finished(self, snapshot: object) -> None:
        self.stats_loaded.emit(snapshot)

    def _on_outdated_finished(self, names: object) -> None:
        self.outdated.replace(PackageSummary(name=name, installed=True) for name in names)
        self.outdated_loaded.emit(self.outdated.names())

    def _after_install(self, name: str) -> None:
        self.search_results.replace(
            replace(row, installed=True) if row.name == name else row
            for row in self.search_results
        )
        self.searched.emit(self.search_results.summaries())
        self.refresh_installed()

    def _after_uninstall(self, name: str) -> None:
        self.installed.remove_by_name(name)
        self.installed_loaded.emit(self.installed.summaries())
        if self.outdated.remove_by_name(name) is not None:
            self.outdated_loaded.emit(self.outdated.names())

    def _drop_outdated(self, names: Iterable[str]) -> None:
        for name in names:
            self.outdated.remove_by_name(name)
        self.outdated_loaded.emit(self.outdated.names())

    def _on_batch_progress(self, name: str, position: int, total: int) -> None:
        self.log.emit(f"[upgrade] {name} ({position}/{total})")

    def _on_batch_finished(self, names: list[str], report: BatchReport) -> bool:
        self._names_in_flight.difference_update(names)
        # Failed items stay outdated so they are offered again.
        remaining = report.still_outdated(self.outdated.names())
        self.outdated.replace(PackageSummary(name=name, installed=True) for name in remaining)
        self.outdated_loaded.emit(self.outdated.names())

        self.log.emit(f"[done] {report.summary()}")
        for name, detail in report.failed:
            self.error.emit(f"[error] brew upgrade {name} failed: {detail}")
        self.batch_finished.emit(report)
        return not report.failed
