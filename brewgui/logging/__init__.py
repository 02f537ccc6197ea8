from logly import _LoggerProxy, logger

from brewgui.infra.settings import BrewSettings, load_settings

LOG_FILE_NAME = "brewgui.log"


def init_logger(settings: BrewSettings | None = None) -> _LoggerProxy:
    """Initialize the logger from runtime settings.

    Configures colored console output at `settings.log_level` plus a rotating
    `brewgui.log` in `settings.log_dir`. Settings are read from the environment
    when none are given. Call once at startup, before the first brew command runs.
    """
    if settings is None:
        settings = load_settings()

    logger.configure(
        level=settings.log_level,
        color=True,
        console=True,
        auto_sink=True,
    )

    log_path = settings.log_dir / LOG_FILE_NAME
    logger.add(str(log_path), size_limit="10MB", retention=3)

    logger.success(f"logger initialized at {settings.log_level} ({log_path})")

    return logger
