"""Tests for configuration schema."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from monoship.config.schema import (
    DEFAULT_REGISTRY,
    MonoshipConfig,
    PublishConfig,
    ReleaseConfig,
    VersioningConfig,
)


class TestReleaseConfig:
    """Tests for ReleaseConfig."""

    def test_defaults(self) -> None:
        config = ReleaseConfig()
        assert config.ignore_pre == ["dev"]
        assert config.check_command == "python -m compileall -q ."
        assert config.build_command == "uv build --out-dir dist"
        assert config.include_dev_deps is False
        assert config.timeout is None

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            ReleaseConfig(timeout=0)


class TestPublishConfig:
    """Tests for PublishConfig."""

    def test_defaults(self) -> None:
        config = PublishConfig()
        assert config.registry == DEFAULT_REGISTRY
        assert config.token_env == "MONOSHIP_TOKEN"
        assert config.rate_limit_threshold == 30
        assert config.rate_limit_delay == 21.0

    def test_owner_command_needs_name_placeholder(self) -> None:
        with pytest.raises(ValidationError, match="name"):
            PublishConfig(owner_command="add-owner {owner}")

    def test_owner_command_accepted(self) -> None:
        config = PublishConfig(owner_command="add-owner {name} {owner}")
        assert config.owner_command == "add-owner {name} {owner}"


class TestVersioningConfig:
    """Tests for VersioningConfig."""

    def test_defaults(self) -> None:
        config = VersioningConfig()
        assert config.initial_pre == "dev.1"
        assert config.dev_pre_tag == "dev"
        assert config.dependency_operator == ">="

    def test_unknown_operator(self) -> None:
        with pytest.raises(ValidationError):
            VersioningConfig(dependency_operator="<")


class TestMonoshipConfig:
    """Tests for the root model."""

    def test_minimal(self) -> None:
        config = MonoshipConfig(name="ws", packages=["packages/*"])
        assert config.ignore == []
        assert config.env == {}
        assert isinstance(config.release, ReleaseConfig)

    def test_requires_packages(self) -> None:
        with pytest.raises(ValidationError):
            MonoshipConfig(name="ws", packages=[])

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MonoshipConfig.model_validate(
                {"name": "ws", "packages": ["p/*"], "scripts": {"test": "pytest"}}
            )

    def test_nested_sections(self) -> None:
        config = MonoshipConfig.model_validate(
            {
                "name": "ws",
                "packages": ["p/*"],
                "release": {"ignore_pre": ["dev", "alpha"]},
                "publish": {"rate_limit_threshold": 5},
            }
        )
        assert config.release.ignore_pre == ["dev", "alpha"]
        assert config.publish.rate_limit_threshold == 5
