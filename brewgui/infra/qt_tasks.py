from collections.abc import Callable

from logly import logger
from PySide6.QtCore import QObject, QRunnable, Signal

from brewgui.core.brew_errors import BrewError


class TaskSignals(QObject):
    """Signals emitted by a `FunctionTask`.

    QRunnable is not a QObject, so the signals live on a companion object. Slots
    connected from the GUI thread receive them via queued connections.
    """

    finished = Signal(object)
    failed = Signal(str)
    progress = Signal(str, int, int)  # name, position, total


class FunctionTask(QRunnable):
    """Runs a blocking callable on a `QThreadPool` worker.

    The callable receives the task's `TaskSignals` so long jobs can report
    progress; its return value is emitted through `finished`.
    """

    def __init__(self, label: str, fn: Callable[[TaskSignals], object]):
        super().__init__()
        self.label = label
        self.signals = TaskSignals()
        self._fn = fn

    def run(self) -> None:
        try:
            result = self._fn(self.signals)
        except BrewError as e:
            logger.warning(f"Task failed label={self.label}: {e}")
            self.signals.failed.emit(str(e))
            return
        except Exception as e:
            logger.exception(f"Task crashed label={self.label}")
            self.signals.failed.emit(str(e))
            return
        self.signals.finished.emit(result)
