import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from logly import logger

DEFAULT_LOG_DIR: Final[Path] = Path(__file__).parent.parent / "logs"

_ENV_PREFIX: Final[str] = "BREWGUI_"
_TRUE_VALUES: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class BrewSettings:
    """Runtime settings.

    Attributes:
        executable: Path/name of brew. None means auto-detect.
        json_format: Value passed to `--json=` for structured queries.
        max_workers: Size of the worker pool used for brew calls.
        stats_workers: Concurrent queries issued for a stats snapshot.
        log_level: Minimum level for the logger.
        log_dir: Directory for the rotating log file.
        auto_update: When False, brew's implicit `update` before install/upgrade is
            disabled via HOMEBREW_NO_AUTO_UPDATE.
    """

    executable: str | None = None
    json_format: str = "v2"
    max_workers: int = 4
    stats_workers: int = 6
    log_level: str = "INFO"
    log_dir: Path = DEFAULT_LOG_DIR
    auto_update: bool = True


def _positive_int(raw: str, key: str, default: int) -> int:
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {key}={raw!r}: not an integer")
        return default
    if value < 1:
        logger.warning(f"Ignoring {key}={raw!r}: must be >= 1")
        return default
    return value


def _flag(raw: str, key: str, default: bool) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning(f"Ignoring {key}={raw!r}: not a boolean")
    return default


def load_settings(environ: Mapping[str, str] | None = None) -> BrewSettings:
    """Builds settings from `BREWGUI_*` environment variables.

    Unset variables keep their defaults; malformed values are logged and ignored.

    Args:
        environ: Mapping to read from. Defaults to `os.environ`.

    Returns:
        The resolved settings.
    """
    env = os.environ if environ is None else environ
    defaults = BrewSettings()

    def get(name: str) -> tuple[str, str | None]:
        key = _ENV_PREFIX + name
        value = env.get(key)
        return key, (value if value and value.strip() else None)

    key, raw = get("EXECUTABLE")
    executable = raw.strip() if raw else defaults.executable

    key, raw = get("MAX_WORKERS")
    max_workers = (
        _positive_int(raw, key, defaults.max_workers) if raw else defaults.max_workers
    )

    key, raw = get("STATS_WORKERS")
    stats_workers = (
        _positive_int(raw, key, defaults.stats_workers)
        if raw
        else defaults.stats_workers
    )

    key, raw = get("LOG_LEVEL")
    log_level = raw.strip().upper() if raw else defaults.log_level

    key, raw = get("LOG_DIR")
    log_dir = Path(raw).expanduser() if raw else defaults.log_dir

    key, raw = get("AUTO_UPDATE")
    auto_update = _flag(raw, key, defaults.auto_update) if raw else defaults.auto_update

    return BrewSettings(
        executable=executable,
        max_workers=max_workers,
        stats_workers=stats_workers,
        log_level=log_level,
        log_dir=log_dir,
        auto_update=auto_update,
    )
