"""Unit tests for config.py"""

import pytest

from ghostpub.config import Settings, load_config
from ghostpub.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Run each test in an empty directory with no GHOSTPUB_* env vars."""
    monkeypatch.chdir(tmp_path)
    for name in Settings.model_fields:
        monkeypatch.delenv(f"GHOSTPUB_{name.upper()}", raising=False)


def test_load_config_defaults():
    """Defaults apply when no config.yaml, env var, or CLI override exists."""
    settings = load_config()
    assert settings.sync_folder == "Ghost Posts"
    assert settings.yaml_prefix == "ghost_"
    assert settings.sync_interval == 15
    assert settings.show_notifications is True
    assert settings.db_url == "sqlite:///ghostpub.db"


def test_load_config_reads_config_yaml(tmp_path):
    """Values in config.yaml are applied."""
    (tmp_path / "config.yaml").write_text("ghost_url: https://blog.example.com\nsync_folder: Blog\n")
    settings = load_config()
    assert settings.ghost_url == "https://blog.example.com"
    assert settings.sync_folder == "Blog"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """GHOSTPUB_SYNC_FOLDER takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("sync_folder: Blog\n")
    monkeypatch.setenv("GHOSTPUB_SYNC_FOLDER", "Posts")
    assert load_config().sync_folder == "Posts"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("GHOSTPUB_YAML_PREFIX", "env_")
    assert load_config(overrides={"yaml_prefix": "cli_"}).yaml_prefix == "cli_"
    assert load_config(overrides={"yaml_prefix": None}).yaml_prefix == "env_"


def test_load_config_env_coerces_types(monkeypatch):
    """Env var strings are coerced to the field types."""
    monkeypatch.setenv("GHOSTPUB_SYNC_INTERVAL", "5")
    monkeypatch.setenv("GHOSTPUB_SHOW_NOTIFICATIONS", "false")
    settings = load_config()
    assert settings.sync_interval == 5
    assert settings.show_notifications is False


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_yaml_not_a_mapping(tmp_path):
    """A config.yaml holding a list is rejected."""
    (tmp_path / "config.yaml").write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_sync_interval_must_be_positive():
    """sync_interval below one minute fails validation."""
    with pytest.raises(ValueError):
        load_config(overrides={"sync_interval": 0})


def test_stamp_delay_must_exceed_debounce():
    """The id write-back must be scheduled after the debounce window."""
    with pytest.raises(ValueError, match="stamp_delay_seconds"):
        Settings(debounce_seconds=3, stamp_delay_seconds=2)


def test_api_key_read_from_named_env_var(monkeypatch):
    """api_key() reads the variable named by api_key_env."""
    monkeypatch.setenv("MY_GHOST_KEY", " abc:0011 ")
    assert Settings(api_key_env="MY_GHOST_KEY").api_key() == "abc:0011"


def test_api_key_missing_raises(monkeypatch):
    """An unset credential is a configuration error."""
    monkeypatch.delenv("GHOST_ADMIN_API_KEY", raising=False)
    with pytest.raises(ConfigurationError, match="GHOST_ADMIN_API_KEY"):
        Settings().api_key()


def test_require_url():
    """require_url strips the trailing slash and rejects an empty URL."""
    assert Settings(ghost_url="https://blog.example.com/ ").require_url() == "https://blog.example.com"
    with pytest.raises(ConfigurationError):
        Settings().require_url()
