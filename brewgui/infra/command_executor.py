import subprocess
from collections.abc import Mapping, Sequence
from typing import Protocol

from logly import logger

from brewgui.core.brew_errors import NotAvailable
from brewgui.core.brew_line_parser import decode_output
from brewgui.core.brew_types import Failure, OperationOutcome, Success
from brewgui.infra.brew_executable import build_brew_argv, build_brew_env


class CommandExecutor(Protocol):
    """Runs brew subcommands. Implemented by `BrewExecutor` and by test fakes."""

    def run(self, args: Sequence[str]) -> OperationOutcome: ...

    def probe_available(self) -> bool: ...


def run_command(
    argv: Sequence[str], env: Mapping[str, str] | None = None
) -> OperationOutcome:
    """Runs `argv` to completion and captures its output.

    Arguments are passed as separate tokens; no shell is involved. There is no
    timeout: a hanging tool blocks the calling worker.

    Args:
        argv: Executable followed by its arguments.
        env: Environment for the child. Defaults to the current environment.

    Returns:
        `Success` with decoded stdout/stderr if the exit status is 0, otherwise
        `Failure` with stderr (or stdout when stderr is empty) as detail.
    """
    argv = list(argv)
    logger.info(f"Starting subprocess argv={' '.join(argv)}")
    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            env=dict(env) if env is not None else None,
            check=False,
        )
    except OSError as e:
        logger.warning(f"Subprocess could not be started: {e}")
        return Failure(detail=str(e), returncode=None)

    logger.info(f"Subprocess finished returncode={result.returncode}")
    out = decode_output(result.stdout)
    err = decode_output(result.stderr)
    if result.returncode == 0:
        return Success(output=out, errors=err)
    detail = err.strip() or out.strip() or f"exit status {result.returncode}"
    return Failure(detail=detail, returncode=result.returncode)


class BrewExecutor:
    """Executes brew subcommands, one fresh process per call."""

    def __init__(
        self,
        executable: str | None = None,
        env: Mapping[str, str] | None = None,
        auto_update: bool = True,
    ) -> None:
        self._executable = executable
        self._env = build_brew_env(env, auto_update=auto_update)

    def argv(self, args: Sequence[str]) -> list[str]:
        return build_brew_argv(*args, executable=self._executable)

    def run(self, args: Sequence[str]) -> OperationOutcome:
        return run_command(self.argv(args), env=self._env)

    def probe_available(self) -> bool:
        """Returns True if `brew --version` can be spawned and exits with 0."""
        argv = self.argv(["--version"])
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=self._env,
                check=False,
            )
        except OSError as e:
            logger.warning(f"brew probe failed: {e}")
            return False
        return result.returncode == 0

    def ensure_available(self) -> None:
        """Raises `NotAvailable` if brew cannot be run."""
        if not self.probe_available():
            raise NotAvailable()
