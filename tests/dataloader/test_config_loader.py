# tests/dataloader/test_config_loader.py

from pathlib import Path

import pytest
import yaml

from alloclean.dataloader.config_loader import ConfigLoader
from alloclean.errors import ConfigError
from alloclean.schemas.models import Config


@pytest.fixture()
def tmp_yaml(tmp_path: Path) -> Path:
    """Writes a YAML file with a partial but valid Config."""
    path = tmp_path / "config.yaml"
    cfg = {
        "validation": {"priority_max": 4, "reference_heuristic": False},
        "export": {"include_inactive_rules": True},
        "auto_correct": True,
    }
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f)
    return path


def test_load_valid_yaml_returns_config(tmp_yaml: Path):
    """
    @brief
    Valid YAML is parsed, validated and merged with defaults.
    """
    # --- Act ---
    cfg = ConfigLoader().load(tmp_yaml)

    # --- Assert ---
    assert isinstance(cfg, Config)
    assert cfg.validation.priority_max == 4
    assert cfg.validation.priority_min == 1
    assert cfg.validation.reference_heuristic is False
    assert cfg.export.include_inactive_rules is True
    assert cfg.auto_correct is True


def test_load_or_default_without_path_returns_defaults():
    cfg = ConfigLoader().load_or_default(None)
    assert cfg == Config()


def test_missing_file_raises_configerror(tmp_path: Path):
    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(tmp_path / "no_such.yaml")
    assert "not found" in str(e.value)


def test_wrong_extension_raises_configerror(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)
    assert "extension" in str(e.value)


def test_non_path_argument_raises_configerror():
    with pytest.raises(ConfigError):
        ConfigLoader().load("config.yaml")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("validation: [unclosed", "YAML parsing failed"),
        ("", "empty"),
        ("- a\n- b\n", "mapping"),
        ("unknown_section: 1\n", "Invalid configuration structure"),
        ("validation:\n  reference_max_suffix: -1\n", "Invalid configuration structure"),
    ],
)
def test_bad_yaml_content_raises_configerror(tmp_path: Path, text: str, fragment: str):
    """
    @brief
    Every malformed configuration is reported as ConfigError.

    @details
    Covers syntax errors, empty documents, non-mapping roots, unknown keys
    (strict model) and bound violations.
    """
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(path)
    assert fragment in str(e.value)
