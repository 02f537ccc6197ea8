from brewgui.core.brew_errors import CommandFailed
from brewgui.core.brew_info_parser import parse_bulk_listing, parse_detail
from brewgui.core.brew_line_parser import parse_line_list, parse_outdated_names
from brewgui.core.brew_types import Failure, FormulaDetail, PackageSummary
from brewgui.infra.command_executor import CommandExecutor

# `brew search` exits 1 with this message when nothing matches.
_NO_MATCH_MARKERS = ("no formulae or casks found", "no formulae found")


class PackageQueries:
    """Read-only brew queries. Every method blocks; call from a worker."""

    def __init__(self, executor: CommandExecutor, json_format: str = "v2") -> None:
        self._executor = executor
        self._json_flag = f"--json={json_format}"

    def _stdout(self, args: list[str]) -> str:
        outcome = self._executor.run(args)
        if isinstance(outcome, Failure):
            raise CommandFailed(outcome.detail, args, outcome.returncode)
        return outcome.output

    def installed_packages(self) -> list[PackageSummary]:
        """Lists installed formulae via `brew info --json=v2 --installed`."""
        return parse_bulk_listing(
            self._stdout(["info", self._json_flag, "--installed"]), installed=True
        )

    def formula_detail(self, name: str) -> FormulaDetail:
        """Loads detail for one formula via `brew info --json=v2 <name>`."""
        return parse_detail(self._stdout(["info", self._json_flag, name]))

    def search(self, term: str) -> list[str]:
        """Searches formula names.

        An empty term lists every known formula. A term without matches yields an
        empty list rather than an error.
        """
        args = ["search", "--formula"]
        term = term.strip()
        if term:
            args.append(term)

        outcome = self._executor.run(args)
        if not isinstance(outcome, Failure):
            return parse_line_list(outcome.output)
        if any(marker in outcome.detail.lower() for marker in _NO_MATCH_MARKERS):
            return []
        raise CommandFailed(outcome.detail, args, outcome.returncode)

    def outdated_names(self) -> list[str]:
        """Lists installed formulae with a newer version available."""
        return parse_outdated_names(self._stdout(["outdated", "--formula"]))
