from pathlib import Path

from brewgui.infra.settings import DEFAULT_LOG_DIR, BrewSettings, load_settings


def test_load_settings_defaults_when_environment_is_empty() -> None:
    assert load_settings({}) == BrewSettings()
    assert BrewSettings().log_dir == DEFAULT_LOG_DIR


def test_load_settings_reads_overrides() -> None:
    settings = load_settings(
        {
            "BREWGUI_EXECUTABLE": " /opt/homebrew/bin/brew ",
            "BREWGUI_MAX_WORKERS": "2",
            "BREWGUI_STATS_WORKERS": "3",
            "BREWGUI_LOG_LEVEL": "debug",
            "BREWGUI_LOG_DIR": "/tmp/brewgui-logs",
            "BREWGUI_AUTO_UPDATE": "no",
        }
    )

    assert settings.executable == "/opt/homebrew/bin/brew"
    assert settings.max_workers == 2
    assert settings.stats_workers == 3
    assert settings.log_level == "DEBUG"
    assert settings.log_dir == Path("/tmp/brewgui-logs")
    assert settings.auto_update is False


def test_load_settings_ignores_malformed_values() -> None:
    settings = load_settings(
        {
            "BREWGUI_MAX_WORKERS": "many",
            "BREWGUI_STATS_WORKERS": "0",
            "BREWGUI_AUTO_UPDATE": "sometimes",
            "BREWGUI_EXECUTABLE": "   ",
        }
    )

    assert settings == BrewSettings()
