"""The tag matrix turns requested tags and platforms into concrete image references."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .config import BuildRequest
from .exceptions import ConfigurationConflict

DEFAULT_PLATFORM_KEY = "default"


def platform_slug(platform: str) -> str:
    """Tag-safe rendering of a platform identifier: ``linux/arm64`` -> ``linux-arm64``."""
    return platform.replace("/", "-")


class ModeKind(str, Enum):
    """How tags map to references for one run."""

    NONE = "none"
    PUSH_BY_DIGEST_SINGLE = "pushByDigestSingle"
    MULTI_RUNNER = "multiRunner"


SPLIT_KINDS = (ModeKind.PUSH_BY_DIGEST_SINGLE, ModeKind.MULTI_RUNNER)


@dataclass(frozen=True)
class BuildMode:
    """
    Tagged variant selecting the reference layout.

    Split kinds give every tag a platform-suffixed reference and carry
    exactly one platform; anything else is rejected on construction.
    """

    kind: ModeKind
    platforms: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.kind in SPLIT_KINDS and len(self.platforms) != 1:
            if self.kind == ModeKind.MULTI_RUNNER:
                raise ConfigurationConflict(
                    "if multiRunnerBuild is true, one platform must be specified"
                )
            raise ConfigurationConflict(
                f"{self.kind.value} mode requires exactly one platform, "
                f"got {len(self.platforms)}"
            )

    @property
    def split(self) -> bool:
        return self.kind in SPLIT_KINDS

    @property
    def platform_key(self) -> str:
        if not self.platforms:
            return DEFAULT_PLATFORM_KEY
        return ",".join(self.platforms)

    @classmethod
    def select(cls, request: BuildRequest) -> BuildMode:
        """Picks the mode for a request. Multi-runner wins over push-by-digest."""
        platforms = tuple(request.platforms)
        if request.multi_runner_build:
            return cls(ModeKind.MULTI_RUNNER, platforms)
        if request.push_by_digest and len(platforms) == 1:
            return cls(ModeKind.PUSH_BY_DIGEST_SINGLE, platforms)
        return cls(ModeKind.NONE, platforms)


@dataclass(frozen=True)
class ImageTask:
    """One tag on one platform key, and the reference handed to the build engine."""

    tag: str
    platform_key: str
    reference: str


def build_matrix(tags: Sequence[str], mode: BuildMode) -> List[ImageTask]:
    """
    Expands tags into ImageTasks, one per tag.

    Several platforms without splitting stay a single multi-arch build:
    the engine fans them out and the task's platform key is the whole set.
    Platforms are forwarded verbatim, never deduplicated or validated.
    """
    if mode.split:
        suffix = platform_slug(mode.platforms[0])
        return [
            ImageTask(tag=tag, platform_key=mode.platforms[0], reference=f"{tag}-{suffix}")
            for tag in tags
        ]
    return [ImageTask(tag=tag, platform_key=mode.platform_key, reference=tag) for tag in tags]


def references(tasks: Sequence[ImageTask]) -> List[str]:
    """Distinct references in task order."""
    seen = []
    for task in tasks:
        if task.reference not in seen:
            seen.append(task.reference)
    return seen
