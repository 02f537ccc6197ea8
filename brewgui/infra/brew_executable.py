import os
import shutil
from collections.abc import Mapping
from typing import Final

# Default install locations: Apple Silicon, Intel macOS, Linuxbrew.
BREW_PREFIX_CANDIDATES: Final[tuple[str, ...]] = (
    "/opt/homebrew/bin/brew",
    "/usr/local/bin/brew",
    "/home/linuxbrew/.linuxbrew/bin/brew",
)


def find_brew_executable() -> str:
    """Finds a usable brew executable.

    Prefers whatever `brew` is on PATH, then the standard Homebrew prefixes (GUI
    apps launched outside a login shell often lack them on PATH).

    Returns:
        The executable path or name to use with subprocess.
    """
    found = shutil.which("brew")
    if found:
        return found
    for candidate in BREW_PREFIX_CANDIDATES:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return "brew"


def build_brew_argv(*args: str, executable: str | None = None) -> list[str]:
    """Builds an argv list to run a brew subcommand.

    Args:
        *args: Subcommand and its arguments, one token each.
        executable: brew path/name. If omitted, it will be auto-detected.

    Returns:
        Argument vector suitable for `subprocess.run(...)`.
    """
    exe = executable or find_brew_executable()
    return [exe, *args]


def build_brew_env(
    base: Mapping[str, str] | None = None, auto_update: bool = True
) -> dict[str, str]:
    """Returns the child environment with brew's decorations turned off."""
    env = dict(os.environ if base is None else base)
    env.setdefault("HOMEBREW_NO_COLOR", "1")
    env.setdefault("HOMEBREW_NO_EMOJI", "1")
    env.setdefault("HOMEBREW_NO_ENV_HINTS", "1")
    if not auto_update:
        env["HOMEBREW_NO_AUTO_UPDATE"] = "1"
    return env
