"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from filebay.config import (
    ConfigError,
    ConfigManager,
    FilebayConfig,
    assign_nested,
    parse_env_overrides,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".filebay" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "Filebay configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, FilebayConfig)
    assert config.storage.max_upload_mb == 50
    assert config.organization.conflict_resolution == "timestamp"


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"storage": {"max_upload_mb": 64}, "server": {"port": 8080}})

    env = {"FILEBAY__SERVER__PORT": "9090", "FILEBAY__NAMING__FALLBACK_NAME": "file"}
    cli = {"server.port": 7070}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.storage.max_upload_mb == 64
    assert config.naming.fallback_name == "file"
    # CLI overrides take precedence over environment
    assert config.server.port == 7070


def test_environment_is_read_from_manager_env(tmp_path: Path) -> None:
    manager = ConfigManager(
        config_path=tmp_path / "config.yaml",
        env={"FILEBAY__AUTH__ENABLED": "false", "UNRELATED": "1"},
    )

    config = manager.load()

    assert config.auth.enabled is False


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected(tmp_path: Path) -> None:
    manager = ConfigManager(config_path=tmp_path / "config.yaml", env={})
    manager.save({"storage": {"rooot": "/tmp"}})

    with pytest.raises(ConfigError):
        manager.load()


def test_env_lists_accept_comma_separated_values(tmp_path: Path) -> None:
    manager = ConfigManager(
        config_path=tmp_path / "config.yaml",
        env={"FILEBAY__SERVER__CORS_ORIGINS": "https://app.example, https://admin.example"},
    )

    config = manager.load()

    assert config.server.cors_origins == ["https://app.example", "https://admin.example"]


def test_env_lists_accept_yaml_and_single_values() -> None:
    overrides = parse_env_overrides(
        {
            "FILEBAY__SERVER__CORS_ORIGINS": "['https://a.example']",
            "FILEBAY__CLASSIFICATION__EXTRA_MIME_TYPES__FONTS": "font/x-custom",
        }
    )

    assert overrides == {
        "server": {"cors_origins": ["https://a.example"]},
        "classification": {"extra_mime_types": {"fonts": ["font/x-custom"]}},
    }


def test_env_sets_extra_mappings_per_category(tmp_path: Path) -> None:
    manager = ConfigManager(
        config_path=tmp_path / "config.yaml",
        env={
            "FILEBAY__CLASSIFICATION__EXTRA_EXTENSIONS__IMAGES": ".heic,.avif",
            "FILEBAY__CLASSIFICATION__EXTRA_EXTENSIONS__DOCUMENTS": ".pages",
        },
    )

    config = manager.load()

    assert config.classification.extra_extensions == {
        "documents": [".pages"],
        "images": [".heic", ".avif"],
    }


def test_env_scalars_are_yaml_literals() -> None:
    overrides = parse_env_overrides(
        {"FILEBAY__STORAGE__MAX_UPLOAD_MB": "64", "FILEBAY__STORAGE__FSYNC": "no", "PATH": "/bin"}
    )

    assert overrides == {"storage": {"max_upload_mb": 64, "fsync": False}}


def test_conflicting_env_variables_raise() -> None:
    with pytest.raises(ConfigError):
        parse_env_overrides(
            {"FILEBAY__SERVER": "localhost", "FILEBAY__SERVER__PORT": "80"}
        )


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=FilebayConfig(),
            file_overrides={"organization": {"conflict_resolution": "overwrite"}},
        )


def test_assign_nested_creates_and_guards_mappings() -> None:
    data: dict = {"storage": {"fsync": True}}

    assign_nested(data, ["storage", "root"], "/srv")
    assign_nested(data, ["server", "port"], 8080)
    assert data == {"storage": {"fsync": True, "root": "/srv"}, "server": {"port": 8080}}

    with pytest.raises(ConfigError):
        assign_nested(data, ["server", "port", "value"], 1)
