"""Job inputs for devcontainer-publish using Pydantic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import InputError

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")

DEFAULT_ARCHIVE_PATH = "/tmp/output.tar"


def split_lines(value: str) -> List[str]:
    """Split a multi-line input, trimming each line and dropping blanks."""
    return [line.strip() for line in value.splitlines() if line.strip()]


def parse_bool(value: str) -> bool:
    """Parse a boolean input the way the Actions toolkit does (YAML 1.2 core schema)."""
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ValueError(
        f"{value!r} is not a boolean. Use one of: true | True | TRUE | false | False | FALSE"
    )


def resolve_env(
    lines: List[str], inherit: bool, environ: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Resolve the environment overlay handed to the build engine.

    ``NAME=value`` lines set a value; a bare ``NAME`` copies it from the
    process environment (empty when unset). With ``inherit`` the whole
    process environment comes first and the overlay wins.
    """
    environ = os.environ if environ is None else environ
    resolved: Dict[str, str] = dict(environ) if inherit else {}
    for line in lines:
        name, sep, value = line.partition("=")
        name = name.strip()
        if not name:
            continue
        resolved[name] = value if sep else environ.get(name, "")
    return resolved


class BuildRequest(BaseModel):
    """Immutable, fully resolved description of one build-and-publish run."""

    model_config = ConfigDict(frozen=True)

    workspace_folder: Path
    config_file: Optional[Path] = None
    tags: Tuple[str, ...] = ()
    platforms: Tuple[str, ...] = ()
    cache_from: Tuple[str, ...] = ()
    cache_to: Tuple[str, ...] = ()
    no_cache: bool = False
    user_data_folder: Optional[str] = None
    push: bool = False
    push_by_digest: bool = False
    multi_runner_build: bool = False
    env: Dict[str, str] = Field(default_factory=dict)
    archive_path: Path = Path(DEFAULT_ARCHIVE_PATH)


class JobInputs(BaseModel):
    """Raw job inputs as the CI step declares them, with their defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    checkout_path: str = Field(".", alias="checkoutPath")
    """Directory the repository was checked out to."""

    sub_folder: str = Field("", alias="subFolder")
    """Folder under checkoutPath holding the .devcontainer definition."""

    config_file: str = Field("", alias="configFile")
    """devcontainer.json path relative to checkoutPath. Empty means auto-detect."""

    env: List[str] = Field(default_factory=list)
    """Environment overlay lines: NAME=value or a bare NAME."""

    inherit_env: bool = Field(False, alias="inheritEnv")

    cache_from: List[str] = Field(default_factory=list, alias="cacheFrom")
    cache_to: List[str] = Field(default_factory=list, alias="cacheTo")
    no_cache: bool = Field(False, alias="noCache")

    user_data_folder: str = Field("", alias="userDataFolder")

    tags: List[str] = Field(default_factory=list)
    """Registry-qualified image tags to build and publish."""

    platforms: List[str] = Field(default_factory=list, alias="platform")
    """Target platforms, e.g. linux/amd64."""

    push: bool = False
    push_by_digest: bool = Field(False, alias="pushByDigest")
    multi_runner_build: bool = Field(False, alias="multiRunnerBuild")

    archive_path: str = Field(DEFAULT_ARCHIVE_PATH, alias="archivePath")
    """Local OCI archive written by the build and read by the transfer tool."""

    @field_validator("env", "cache_from", "cache_to", "tags", "platforms", mode="before")
    @classmethod
    def _split_multiline(cls, value):
        if isinstance(value, str):
            return split_lines(value)
        return value

    @field_validator("inherit_env", "no_cache", "push", "push_by_digest", "multi_runner_build", mode="before")
    @classmethod
    def _strict_bool(cls, value):
        if isinstance(value, str):
            return parse_bool(value.strip())
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> JobInputs:
        """Loads inputs from ``INPUT_<NAME>`` variables set by the Actions runner."""
        environ = os.environ if environ is None else environ
        data = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            value = environ.get(f"INPUT_{alias.upper()}", "")
            if value.strip():
                data[alias] = value
        return cls._validate(data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> JobInputs:
        """Loads and validates inputs from a YAML file keyed by input name."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls._validate(data)

    @classmethod
    def _validate(cls, data) -> JobInputs:
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InputError(f"Invalid job inputs: {exc}") from exc

    def to_request(self, environ: Optional[Mapping[str, str]] = None) -> BuildRequest:
        """Resolves paths and the environment overlay into a BuildRequest."""
        checkout = Path(self.checkout_path)
        config_file = (checkout / self.config_file).resolve() if self.config_file else None
        return BuildRequest(
            workspace_folder=(checkout / self.sub_folder).resolve(),
            config_file=config_file,
            tags=tuple(self.tags),
            platforms=tuple(self.platforms),
            cache_from=tuple(self.cache_from),
            cache_to=tuple(self.cache_to),
            no_cache=self.no_cache,
            user_data_folder=self.user_data_folder or None,
            push=self.push,
            push_by_digest=self.push_by_digest,
            multi_runner_build=self.multi_runner_build,
            env=resolve_env(self.env, self.inherit_env, environ),
            archive_path=Path(self.archive_path),
        )
