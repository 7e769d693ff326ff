"""Tests for themesync.adapters.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from themesync.adapters.config import ConfigLoader, load_project_config, parse_config
from themesync.core.constants import DEFAULT_BINARY_FORMATS
from themesync.core.exceptions import ConfigError

CONFIG = """
store_url = "shop.example.com"
theme_id = "42"
api_key = "key"
password = "secret"
port = 3100

[throttle]
leak_rate = 2

[tools]
minifier = "terser --compress"
"""


def write_config(directory: Path, text: str = CONFIG) -> Path:
    path = directory / "themesync.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_config_defaults(tmp_path: Path) -> None:
    config = parse_config({}, None)

    assert config.store.api_version == "2020-10"
    assert config.server.port == 3000
    assert config.server.reload_delay == 2.0
    assert config.throttle.bucket_size == 80
    assert config.throttle.leak_rate == 4
    assert config.throttle.padding == 5
    assert config.tools.minifier == ["jsmin"]
    assert config.tools.style_compiler == ["sass", "--no-source-map", "--style=compressed"]
    assert config.styles.entry == "main.scss"
    assert config.styles.output_key == "assets/main.min.css.liquid"
    assert config.binary_formats == DEFAULT_BINARY_FORMATS
    assert config.paths.base == Path.cwd().resolve()


def test_parse_config_from_file(tmp_path: Path) -> None:
    path = write_config(tmp_path)
    cfg = ConfigLoader().load(path, use_env=False)

    config = parse_config(cfg, path)

    assert config.store.theme_id == "42"
    assert config.server.port == 3100
    assert config.throttle.leak_rate == 2.0
    assert config.tools.minifier == ["terser", "--compress"]
    assert config.paths.base == tmp_path.resolve()
    assert config.paths.scripts == tmp_path.resolve() / "scripts"


def test_relative_base_path_is_anchored_at_config_dir(tmp_path: Path) -> None:
    path = write_config(tmp_path, CONFIG + '\nbase_path = "site"\n')

    config = parse_config(ConfigLoader().load(path, use_env=False), path)

    assert config.paths.base == (tmp_path / "site").resolve()


def test_binary_formats_are_normalised() -> None:
    config = parse_config({"binary_formats": ["PNG", ".svg"]}, None)

    assert config.binary_formats == (".png", ".svg")
    assert config.is_binary(Path("a/logo.PNG"))


def test_priority_cli_over_env_over_dotenv_over_toml(tmp_path: Path) -> None:
    path = write_config(tmp_path)
    (tmp_path / ".env").write_text(
        "THEMESYNC_PASSWORD=from-dotenv\nTHEMESYNC_THEME_ID=7\nTHEMESYNC_PORT=4000\n",
        encoding="utf-8",
    )
    environ = {"THEMESYNC_PORT": "5000", "THEMESYNC_THEME_ID": "0042"}

    cfg = ConfigLoader().load(path, cli_overrides={"port": 6000, "theme_id": None}, environ=environ)

    assert cfg["password"] == "from-dotenv"
    assert cfg["theme_id"] == "0042"
    assert cfg["port"] == 6000
    assert cfg["throttle"] == {"leak_rate": 2}


def test_env_nested_keys_and_conversion() -> None:
    environ = {
        "THEMESYNC_BUCKET_SIZE": "40",
        "THEMESYNC_LEAK_RATE": "2.5",
        "THEMESYNC_OPEN_BROWSER": "false",
        "THEMESYNC_API_KEY": "12345",
    }

    cfg = ConfigLoader().load_env(environ)

    assert cfg == {
        "throttle": {"bucket_size": 40, "leak_rate": 2.5},
        "open_browser": False,
        "api_key": "12345",
    }


def test_validate_reports_missing_credentials() -> None:
    config = parse_config({"store_url": "shop.example.com"}, None)

    with pytest.raises(ConfigError, match="theme_id"):
        config.validate()


def test_validate_rejects_url_with_scheme() -> None:
    config = parse_config(
        {"store_url": "https://shop.example.com", "theme_id": 1, "api_key": "k", "password": "p"},
        None,
    )

    with pytest.raises(ConfigError, match="bare hostname"):
        config.validate()


def test_load_project_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_project_config(tmp_path / "nope.toml")


def test_load_project_config_invalid_toml(tmp_path: Path) -> None:
    path = write_config(tmp_path, "store_url = [unclosed")

    with pytest.raises(ConfigError):
        load_project_config(path, use_env=False)


def test_missing_watched_roots(tmp_path: Path) -> None:
    path = write_config(tmp_path)
    config = load_project_config(path, use_env=False)
    (tmp_path / "scripts").mkdir()

    with pytest.raises(ConfigError, match="styles"):
        config.paths.ensure()
