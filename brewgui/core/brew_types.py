from dataclasses import dataclass, field
from datetime import datetime, timezone

from .brew_errors import CommandFailed


@dataclass(frozen=True, slots=True)
class PackageSummary:
    """Represents one row of a package listing.

    Attributes:
        name: Formula name, the stable identity used across all brew calls.
        version: Latest known stable version, if reported.
        description: One-line description, if reported.
        homepage: Project homepage URL, if reported.
        installed: Whether the formula is installed locally.
    """

    name: str
    version: str | None = None
    description: str | None = None
    homepage: str | None = None
    installed: bool = False


@dataclass(frozen=True, slots=True)
class VersionInfo:
    """Version block of `brew info --json=v2` output."""

    stable: str | None = None
    head: str | None = None
    bottle: bool | None = None


@dataclass(frozen=True, slots=True)
class InstalledReceipt:
    """One installed keg of a formula.

    Attributes:
        version: Installed version string.
        built_as_bottle: Whether the keg was built as a bottle.
        poured_from_bottle: Whether the keg was poured from a prebuilt bottle.
        installed_as_dependency: Whether it was pulled in by another formula.
        installed_on_request: Whether the user asked for it explicitly.
        time: Install time as epoch seconds, if reported.
        used_options: Build options used for the install.
    """

    version: str
    built_as_bottle: bool = False
    poured_from_bottle: bool = False
    installed_as_dependency: bool = False
    installed_on_request: bool = False
    time: int | None = None
    used_options: tuple[str, ...] = ()

    @property
    def installed_at(self) -> datetime | None:
        if self.time is None:
            return None
        return datetime.fromtimestamp(self.time, tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class FormulaDetail:
    """Detailed information about a single formula.

    Everything except `name` is optional: brew adds and drops fields between
    releases, so a missing field is stored as None rather than treated as an error.
    """

    name: str
    versions: VersionInfo = field(default_factory=VersionInfo)
    full_name: str | None = None
    tap: str | None = None
    description: str | None = None
    homepage: str | None = None
    license: str | None = None
    aliases: tuple[str, ...] | None = None
    build_dependencies: tuple[str, ...] | None = None
    dependencies: tuple[str, ...] | None = None
    test_dependencies: tuple[str, ...] | None = None
    recommended_dependencies: tuple[str, ...] | None = None
    optional_dependencies: tuple[str, ...] | None = None
    conflicts_with: tuple[str, ...] | None = None
    caveats: str | None = None
    keg_only: bool | None = None
    installed: tuple[InstalledReceipt, ...] | None = None
    linked_keg: str | None = None
    pinned: bool | None = None
    outdated: bool | None = None
    deprecated: bool | None = None
    deprecation_date: str | None = None
    deprecation_reason: str | None = None
    disabled: bool | None = None
    disable_date: str | None = None
    disable_reason: str | None = None

    @property
    def version(self) -> str | None:
        return self.versions.stable

    @property
    def is_installed(self) -> bool:
        return bool(self.installed)

    def to_summary(self) -> PackageSummary:
        return PackageSummary(
            name=self.name,
            version=self.versions.stable,
            description=self.description,
            homepage=self.homepage,
            installed=self.is_installed,
        )


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """Binds a displayed row position to a formula name."""

    index: int
    name: str


@dataclass(frozen=True, slots=True)
class Success:
    """A brew invocation that exited with status 0.

    Attributes:
        output: Decoded stdout.
        errors: Decoded stderr (brew writes progress there for some commands).
    """

    output: str
    errors: str = ""

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> str:
        return self.output


@dataclass(frozen=True, slots=True)
class Failure:
    """A brew invocation that failed to spawn or exited non-zero.

    Attributes:
        detail: Diagnostic text as reported by brew.
        returncode: Exit status, or None if the process never started.
    """

    detail: str
    returncode: int | None = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> str:
        raise CommandFailed(self.detail, returncode=self.returncode)


OperationOutcome = Success | Failure


@dataclass(frozen=True, slots=True)
class BatchReport:
    """Per-item results of a multi-package operation, in submission order."""

    outcomes: tuple[tuple[str, OperationOutcome], ...] = ()

    @property
    def submitted(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.outcomes)

    @property
    def succeeded(self) -> frozenset[str]:
        return frozenset(name for name, outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> list[tuple[str, str]]:
        return [
            (name, outcome.detail)
            for name, outcome in self.outcomes
            if isinstance(outcome, Failure)
        ]

    def still_outdated(self, previous: list[str] | tuple[str, ...]) -> list[str]:
        """Returns `previous` minus the names that were upgraded, order preserved."""
        done = self.succeeded
        return [name for name in previous if name not in done]

    def summary(self) -> str:
        failed = self.failed
        text = f"{len(self.succeeded)} upgraded, {len(failed)} failed"
        if failed:
            text += ": " + ", ".join(name for name, _ in failed)
        return text


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    """Dashboard counts; each one is zero when its query failed."""

    installed: int = 0
    casks: int = 0
    outdated: int = 0
    formulae: int = 0
    leaves: int = 0
    taps: int = 0
