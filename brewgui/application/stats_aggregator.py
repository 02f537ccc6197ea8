from concurrent.futures import ThreadPoolExecutor
from typing import Final

from logly import logger

from brewgui.core.brew_line_parser import count_nonempty_lines
from brewgui.core.brew_types import Failure, StatsSnapshot
from brewgui.infra.command_executor import CommandExecutor

STATS_QUERIES: Final[dict[str, tuple[str, ...]]] = {
    "installed": ("list", "--formula", "-1"),
    "casks": ("list", "--cask", "-1"),
    "outdated": ("outdated", "--formula"),
    "formulae": ("formulae",),
    "leaves": ("leaves",),
    "taps": ("tap",),
}


class StatsAggregator:
    """Builds a best-effort `StatsSnapshot`.

    Each count comes from its own brew call. A failing call contributes zero
    instead of failing the snapshot.
    """

    def __init__(self, executor: CommandExecutor, max_workers: int = 6) -> None:
        self._executor = executor
        self._max_workers = max_workers

    def _count(self, field: str, args: tuple[str, ...]) -> int:
        try:
            outcome = self._executor.run(list(args))
        except Exception:
            logger.exception(f"Stats query crashed field={field}")
            return 0
        if isinstance(outcome, Failure):
            logger.warning(f"Stats query failed field={field}: {outcome.detail}")
            return 0
        return count_nonempty_lines(outcome.output)

    def snapshot(self) -> StatsSnapshot:
        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="brew-stats"
        ) as pool:
            futures = {
                field: pool.submit(self._count, field, args)
                for field, args in STATS_QUERIES.items()
            }
            counts = {field: future.result() for field, future in futures.items()}
        return StatsSnapshot(**counts)
