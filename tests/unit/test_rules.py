"""
Rules file loading and validation.

Verifies that rules.yaml parses into the typed model, that markdown fences
are tolerated, and that bad input fails fast with ValueError.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from src.domain.policy import DeletePolicy
from src.rules.loader import load_rules, parse_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent.parent

MINIMAL = {"project": {"slug": "files", "rules_version": "1"}}


def dump(rules: dict[str, Any]) -> str:
    return yaml.safe_dump(rules)


class TestProjectRulesFile:
    def test_load_actual_rules_file(self, rules: Rules) -> None:
        assert rules.project.slug == "course-file-service"
        assert rules.storage.bucket == "files"
        assert rules.storage.max_upload_bytes == 2 * 1024 * 1024 * 1024

    def test_events_route_uploads_to_processing_queue(self, rules: Rules) -> None:
        routes = rules.events.to_config().routes
        assert routes.queue_for("upload") == "file.processing.queue"
        assert routes.queue_for("delete") == "notification.queue"

    def test_access_policy_defaults_to_admin_only(self, rules: Rules) -> None:
        assert rules.access.to_policy().delete_policy is DeletePolicy.ADMIN_ONLY
        assert rules.access.role_aliases["teacher"] == "instructor"

    def test_every_configured_key_is_a_model_field(self) -> None:
        raw = yaml.safe_load((PROJECT_ROOT / "rules.yaml").read_text())

        for section, values in raw.items():
            model = Rules.model_fields[section].annotation
            assert set(values) <= set(model.model_fields), section

    def test_auth_section_configures_verification_only(self, rules: Rules) -> None:
        assert set(rules.auth.model_dump()) == {"client_id", "algorithm"}


class TestParseRules:
    def test_minimal_rules_get_defaults(self) -> None:
        rules = parse_rules(dump(MINIMAL))

        assert rules.storage.chunk_size == 64 * 1024
        assert rules.events.capacity == 1000
        assert rules.auth.client_id == "microservices-client"

    def test_markdown_fences_are_stripped(self) -> None:
        content = "# Rules\n\n```yaml\n" + dump(MINIMAL) + "```\n\nTrailing notes.\n"
        assert parse_rules(content).project.slug == "files"

    def test_invalid_yaml_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            parse_rules("project: [unclosed")

    def test_schema_violation_raises_value_error(self) -> None:
        bad = dict(MINIMAL, access={"delete_policy": "everyone"})
        with pytest.raises(ValueError, match="validation failed"):
            parse_rules(dump(bad))

    def test_missing_project_section_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_rules(dump({"storage": {"bucket": "files"}}))

    def test_content_type_override_replaces_table(self) -> None:
        override = dict(
            MINIMAL,
            content_types={
                "documents": {
                    "default": "application/octet-stream",
                    "entries": [{"extension": ".MD", "mime_type": "text/markdown"}],
                }
            },
        )
        config = parse_rules(dump(override)).assets_config()

        assert config.document_types.lookup("readme.md") == "text/markdown"
        assert config.document_types.lookup("slides.pdf") == "application/octet-stream"
        assert config.media_types.lookup("clip.webm") == "video/webm"


class TestLoadRules:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "absent.yaml")

    def test_load_from_disk(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(dump(dict(MINIMAL, storage={"bucket": "uploads"})))

        assert load_rules(path).storage.bucket == "uploads"
