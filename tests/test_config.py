import pytest
from pathlib import Path

from devcontainer_publish.config import JobInputs, parse_bool, resolve_env, split_lines
from devcontainer_publish.exceptions import InputError


def test_job_inputs_parsing(tmp_path):
    config_content = """
    checkoutPath: ./repo
    subFolder: app
    configFile: .devcontainer/ci/devcontainer.json
    tags:
      - ghcr.io/acme/dev:latest
      - ghcr.io/acme/dev:v1.0
    platform: [linux/amd64, linux/arm64]
    cacheFrom: [ghcr.io/acme/dev:cache]
    push: true
    """
    config_path = tmp_path / "inputs.yaml"
    config_path.write_text(config_content)

    inputs = JobInputs.from_yaml(config_path)

    assert inputs.checkout_path == "./repo"
    assert inputs.sub_folder == "app"
    assert inputs.tags == ["ghcr.io/acme/dev:latest", "ghcr.io/acme/dev:v1.0"]
    assert inputs.platforms == ["linux/amd64", "linux/arm64"]
    assert inputs.cache_from == ["ghcr.io/acme/dev:cache"]
    assert inputs.push is True
    assert inputs.push_by_digest is False  # Default
    assert inputs.multi_runner_build is False  # Default
    assert inputs.archive_path == "/tmp/output.tar"  # Default


def test_job_inputs_from_env():
    environ = {
        "INPUT_CHECKOUTPATH": "/work",
        "INPUT_TAGS": "r/i:latest\n\n  r/i:v1.0  \n",
        "INPUT_PLATFORM": "linux/arm64",
        "INPUT_MULTIRUNNERBUILD": "true",
        "INPUT_NOCACHE": "False",
        "INPUT_CONFIGFILE": "",
        "INPUT_ENV": "FOO=bar",
    }

    inputs = JobInputs.from_env(environ)

    assert inputs.checkout_path == "/work"
    assert inputs.tags == ["r/i:latest", "r/i:v1.0"]
    assert inputs.platforms == ["linux/arm64"]
    assert inputs.multi_runner_build is True
    assert inputs.no_cache is False
    assert inputs.config_file == ""
    assert inputs.env == ["FOO=bar"]


def test_job_inputs_rejects_non_boolean():
    with pytest.raises(InputError):
        JobInputs.from_env({"INPUT_PUSH": "yes"})


def test_job_inputs_rejects_unknown_key(tmp_path):
    config_path = tmp_path / "inputs.yaml"
    config_path.write_text("tag: r/i:latest\n")

    with pytest.raises(InputError):
        JobInputs.from_yaml(config_path)


def test_parse_bool():
    assert parse_bool("TRUE") is True
    assert parse_bool("False") is False
    with pytest.raises(ValueError):
        parse_bool("1")


def test_split_lines_drops_blanks():
    assert split_lines("a\n\n  b \n") == ["a", "b"]


def test_resolve_env_overlay():
    environ = {"HOME": "/root", "TOKEN": "secret"}

    assert resolve_env(["A=1", "TOKEN", "MISSING"], False, environ) == {
        "A": "1",
        "TOKEN": "secret",
        "MISSING": "",
    }


def test_resolve_env_inherit_overlay_wins():
    environ = {"HOME": "/root", "A": "old"}

    assert resolve_env(["A=new"], True, environ) == {"HOME": "/root", "A": "new"}


def test_to_request_resolves_paths(tmp_path):
    inputs = JobInputs(
        checkoutPath=str(tmp_path),
        subFolder="app",
        configFile=".devcontainer/devcontainer.json",
        tags=["r/i:latest"],
        platform=["linux/amd64"],
    )

    request = inputs.to_request(environ={})

    assert request.workspace_folder == (tmp_path / "app").resolve()
    assert request.config_file == (tmp_path / ".devcontainer/devcontainer.json").resolve()
    assert request.tags == ("r/i:latest",)
    assert request.platforms == ("linux/amd64",)
    assert request.user_data_folder is None
    assert request.archive_path == Path("/tmp/output.tar")


def test_to_request_without_config_file(tmp_path):
    request = JobInputs(checkoutPath=str(tmp_path)).to_request(environ={})

    assert request.config_file is None
    assert request.workspace_folder == tmp_path.resolve()


def test_build_request_is_immutable(make_request):
    request = make_request(tags=("r/i:latest",))

    with pytest.raises(Exception):  # Pydantic ValidationError
        request.push = True
