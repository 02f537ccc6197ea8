from collections.abc import Callable, Iterable, Sequence
from enum import Enum

from logly import logger

from brewgui.core.brew_types import BatchReport, OperationOutcome
from brewgui.infra.command_executor import CommandExecutor

ProgressCallback = Callable[[str, int, int], None]  # name, position, total


class OperationState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Operation:
    """A single brew invocation with a one-shot lifecycle.

    IDLE -> RUNNING -> SUCCEEDED | FAILED. Both end states are terminal; an
    operation is never re-run. Retrying means creating a new one.
    """

    def __init__(self, label: str, args: Sequence[str]) -> None:
        self.label = label
        self.args = list(args)
        self.state = OperationState.IDLE
        self.outcome: OperationOutcome | None = None

    def execute(self, executor: CommandExecutor) -> OperationOutcome:
        if self.state is not OperationState.IDLE:
            raise RuntimeError(f"operation already {self.state.value}: {self.label}")

        self.state = OperationState.RUNNING
        outcome = executor.run(self.args)
        self.outcome = outcome
        self.state = OperationState.SUCCEEDED if outcome.ok else OperationState.FAILED
        logger.info(f"{self.label}: {self.state.value}")
        return outcome


class OperationCoordinator:
    """Runs install/uninstall/upgrade operations against brew.

    Single operations return their outcome as-is; failures are not retried or
    reinterpreted. Batches run one item at a time, because concurrent brew
    processes contend for the same Cellar lock.
    """

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    def _run(self, *args: str) -> OperationOutcome:
        return Operation(f"brew {' '.join(args)}", args).execute(self._executor)

    def install(self, name: str) -> OperationOutcome:
        return self._run("install", name)

    def uninstall(self, name: str) -> OperationOutcome:
        return self._run("uninstall", name)

    def upgrade_one(self, name: str) -> OperationOutcome:
        return self._run("upgrade", name)

    def upgrade_all(self) -> OperationOutcome:
        return self._run("upgrade")

    def update_tool(self) -> OperationOutcome:
        """Runs `brew update` (progress goes to `Success.errors`)."""
        return self._run("update")

    def upgrade_many(
        self,
        names: Iterable[str],
        on_progress: ProgressCallback | None = None,
    ) -> BatchReport:
        """Upgrades `names` strictly in order, one brew process at a time.

        A failed item never stops the batch. `on_progress(name, position, total)`
        is called after each item finishes, with 1-based positions. Repeated names
        are upgraded once.

        Returns:
            A report holding one outcome per distinct name.
        """
        queue = list(dict.fromkeys(names))
        total = len(queue)
        outcomes: list[tuple[str, OperationOutcome]] = []

        for position, name in enumerate(queue, start=1):
            outcome = self.upgrade_one(name)
            outcomes.append((name, outcome))
            if on_progress is not None:
                on_progress(name, position, total)

        report = BatchReport(outcomes=tuple(outcomes))
        if total:
            logger.info(f"Batch upgrade finished: {report.summary()}")
        return report
