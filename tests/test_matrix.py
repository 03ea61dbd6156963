import pytest

from devcontainer_publish.exceptions import ConfigurationConflict
from devcontainer_publish.matrix import (
    DEFAULT_PLATFORM_KEY,
    BuildMode,
    ImageTask,
    ModeKind,
    build_matrix,
    platform_slug,
    references,
)

TAGS = ["r/i:latest", "r/i:v1.0"]


def test_platform_slug():
    assert platform_slug("linux/amd64") == "linux-amd64"
    assert platform_slug("linux/arm/v7") == "linux-arm-v7"


def test_matrix_without_platforms_uses_tags_verbatim():
    tasks = build_matrix(TAGS, BuildMode(ModeKind.NONE))

    assert tasks == [
        ImageTask(tag="r/i:latest", platform_key=DEFAULT_PLATFORM_KEY, reference="r/i:latest"),
        ImageTask(tag="r/i:v1.0", platform_key=DEFAULT_PLATFORM_KEY, reference="r/i:v1.0"),
    ]


def test_matrix_multi_platform_keeps_one_task_per_tag():
    mode = BuildMode(ModeKind.NONE, ("linux/amd64", "linux/arm64"))

    tasks = build_matrix(TAGS, mode)

    assert [t.reference for t in tasks] == TAGS
    assert {t.platform_key for t in tasks} == {"linux/amd64,linux/arm64"}


def test_matrix_single_platform_without_split():
    tasks = build_matrix(["r/i:latest"], BuildMode(ModeKind.NONE, ("linux/arm64",)))

    assert tasks == [ImageTask("r/i:latest", "linux/arm64", "r/i:latest")]


@pytest.mark.parametrize("kind", [ModeKind.PUSH_BY_DIGEST_SINGLE, ModeKind.MULTI_RUNNER])
def test_matrix_split_modes_suffix_platform(kind):
    tasks = build_matrix(TAGS, BuildMode(kind, ("linux/arm64",)))

    assert [t.reference for t in tasks] == ["r/i:latest-linux-arm64", "r/i:v1.0-linux-arm64"]
    assert all(t.platform_key == "linux/arm64" for t in tasks)
    assert len(set(references(tasks))) == len(tasks)


def test_matrix_empty_tags():
    assert build_matrix([], BuildMode(ModeKind.MULTI_RUNNER, ("linux/amd64",))) == []


@pytest.mark.parametrize("platforms", [(), ("linux/amd64", "linux/arm64")])
def test_split_mode_requires_one_platform(platforms):
    with pytest.raises(ConfigurationConflict, match="one platform must be specified"):
        BuildMode(ModeKind.MULTI_RUNNER, platforms)
    with pytest.raises(ConfigurationConflict):
        BuildMode(ModeKind.PUSH_BY_DIGEST_SINGLE, platforms)


def test_select_mode(make_request):
    assert BuildMode.select(make_request()).kind == ModeKind.NONE
    assert (
        BuildMode.select(make_request(push_by_digest=True, platforms=("linux/amd64",))).kind
        == ModeKind.PUSH_BY_DIGEST_SINGLE
    )
    # push-by-digest only splits a single platform build
    assert (
        BuildMode.select(
            make_request(push_by_digest=True, platforms=("linux/amd64", "linux/arm64"))
        ).kind
        == ModeKind.NONE
    )
    assert (
        BuildMode.select(
            make_request(multi_runner_build=True, push_by_digest=True, platforms=("linux/arm64",))
        ).kind
        == ModeKind.MULTI_RUNNER
    )


def test_select_multi_runner_conflict(make_request):
    with pytest.raises(ConfigurationConflict):
        BuildMode.select(make_request(multi_runner_build=True))


def test_platforms_are_not_deduplicated():
    mode = BuildMode(ModeKind.NONE, ("linux/amd64", "linux/amd64", "bogus"))

    tasks = build_matrix(["r/i:latest"], mode)

    assert tasks[0].platform_key == "linux/amd64,linux/amd64,bogus"


def test_references_are_distinct_in_order():
    tasks = build_matrix(["r/i:a", "r/i:b", "r/i:a"], BuildMode(ModeKind.NONE))

    assert references(tasks) == ["r/i:a", "r/i:b"]
