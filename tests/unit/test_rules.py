"""
Rules loading and validation tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from src.rules.loader import load_rules
from src.rules.models import Rules


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent.parent


@pytest.fixture
def minimal_rules() -> dict[str, Any]:
    return {
        "project": {"slug": "test", "rules_version": "1.0"},
        "invites": {},
        "store": {},
        "ops": {"data_dir_required": False, "required_env": []},
    }


def write_rules(tmp_path: Path, content: Any) -> Path:
    path = tmp_path / "rules.yaml"
    if isinstance(content, str):
        path.write_text(content)
    else:
        path.write_text(yaml.safe_dump(content))
    return path


class TestLoadRules:
    def test_project_rules_file_is_valid(self, project_root: Path) -> None:
        rules = load_rules(project_root / "rules.yaml")

        assert isinstance(rules, Rules)
        assert rules.project.slug == "brand-invite-engine"
        assert rules.invites.default_max_uses == 1
        assert rules.invites.retry.max_attempts >= 1
        assert rules.http.brand_cookie.name == "brand_id"

    def test_defaults_fill_optional_sections(
        self, tmp_path: Path, minimal_rules: dict[str, Any]
    ) -> None:
        rules = load_rules(write_rules(tmp_path, minimal_rules))

        assert rules.invites.retry.max_attempts == 5
        assert rules.store.busy_timeout_seconds == 5.0
        assert rules.http.brand_cookie.max_age_days == 30

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(write_rules(tmp_path, "project: [unclosed"))

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="mapping"):
            load_rules(write_rules(tmp_path, "- just\n- a list\n"))

    def test_missing_section(self, tmp_path: Path, minimal_rules: dict[str, Any]) -> None:
        del minimal_rules["ops"]
        with pytest.raises(ValueError, match="validation failed"):
            load_rules(write_rules(tmp_path, minimal_rules))

    @pytest.mark.parametrize(
        "invites",
        [
            {"default_max_uses": 0},
            {"retry": {"max_attempts": 0}},
            {"retry": {"base_delay_seconds": -1}},
        ],
    )
    def test_out_of_range_values(
        self, tmp_path: Path, minimal_rules: dict[str, Any], invites: dict[str, Any]
    ) -> None:
        minimal_rules["invites"] = invites
        with pytest.raises(ValueError):
            load_rules(write_rules(tmp_path, minimal_rules))
