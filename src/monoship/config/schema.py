"""Pydantic models for monoship.yaml."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REGISTRY = "https://upload.pypi.org/legacy/"


class ReleaseConfig(BaseModel):
    """Settings for the verify stage and package selection defaults."""

    model_config = ConfigDict(extra="forbid")

    ignore_pre: list[str] = Field(
        default_factory=lambda: ["dev"],
        description="Pre-release labels that exclude a package from selection",
    )
    check_command: str = Field(
        default="python -m compileall -q .",
        description="Command run in the package directory in check mode",
    )
    build_command: str = Field(
        default="uv build --out-dir dist",
        description="Command run in the package directory in build mode",
    )
    independence_command: str = Field(
        default="uv build --no-sources --out-dir {out_dir}",
        description=(
            "Command independence-check runs per package; {out_dir} is a scratch directory"
        ),
    )
    include_dev_deps: bool = Field(
        default=False,
        description="Keep dev dependency tables in manifests during a release",
    )
    timeout: float | None = Field(default=None, gt=0)


class PublishConfig(BaseModel):
    """Registry settings."""

    model_config = ConfigDict(extra="forbid")

    registry: str = DEFAULT_REGISTRY
    token_env: str = Field(
        default="MONOSHIP_TOKEN",
        description="Environment variable the registry token is read from",
    )
    dist_dir: str = "dist"
    owner_command: str | None = Field(
        default=None,
        description="Command template used to add an owner, e.g. 'pypi-owner add {name} {owner}'",
    )
    rate_limit_threshold: int = Field(default=30, ge=1)
    rate_limit_delay: float = Field(default=21.0, ge=0)

    @field_validator("owner_command")
    @classmethod
    def _owner_command_placeholders(cls, value: str | None) -> str | None:
        if value is not None and "{name}" not in value:
            raise ValueError("owner_command must contain a {name} placeholder")
        return value


class VersioningConfig(BaseModel):
    """Version manager settings."""

    model_config = ConfigDict(extra="forbid")

    initial_pre: str = Field(
        default="dev.1",
        description="Pre-release used by bump-pre when a version has none",
    )
    dev_pre_tag: str = Field(default="dev", description="Label used by bump-to-dev")
    dependency_operator: str = Field(
        default=">=",
        description="Specifier operator written when a dependent's requirement is updated",
    )

    @field_validator("dependency_operator")
    @classmethod
    def _known_operator(cls, value: str) -> str:
        if value not in {">=", "==", "~="}:
            raise ValueError("dependency_operator must be one of '>=', '==', '~='")
        return value


class MonoshipConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    packages: list[str] = Field(..., min_length=1)
    ignore: list[str] = Field(default_factory=list)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    versioning: VersioningConfig = Field(default_factory=VersioningConfig)
    env: dict[str, str] = Field(default_factory=dict)
