from collections.abc import Sequence


class BrewError(Exception):
    """Base class for errors raised while talking to Homebrew."""


class CommandFailed(BrewError):
    """The brew process could not be spawned or exited unsuccessfully.

    Attributes:
        detail: Captured diagnostic text (stderr, or stdout when stderr was empty).
        argv: Argument vector that was executed, if known.
        returncode: Process exit status, or None when the process never started.
    """

    def __init__(
        self,
        detail: str,
        argv: Sequence[str] = (),
        returncode: int | None = None,
    ) -> None:
        super().__init__(f"Brew command failed: {detail}")
        self.detail = detail
        self.argv = tuple(argv)
        self.returncode = returncode


class ParseError(BrewError):
    """Captured output did not have the expected top-level shape."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to parse brew output: {detail}")
        self.detail = detail


class NotAvailable(BrewError):
    """The brew executable could not be located or probed."""

    def __init__(self) -> None:
        super().__init__("Homebrew is not installed or not in PATH")
