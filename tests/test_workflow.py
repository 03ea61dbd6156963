import logging

import pytest

from devcontainer_publish import workflow


def test_group_closes_on_error(capsys):
    with pytest.raises(RuntimeError, match="boom"):
        with workflow.group("build image"):
            print("inside")
            raise RuntimeError("boom")

    assert capsys.readouterr().out == "::group::build image\ninside\n::endgroup::\n"


def test_set_output_writes_output_file(tmp_path):
    output_file = tmp_path / "output"

    workflow.set_output("imageDigests", '{"a":{}}', {"GITHUB_OUTPUT": str(output_file)})
    workflow.set_output("notes", "line1\nline2", {"GITHUB_OUTPUT": str(output_file)})

    lines = output_file.read_text().splitlines()
    assert lines[0] == 'imageDigests={"a":{}}'
    assert lines[1].startswith("notes<<ghadelimiter_")
    assert lines[2:4] == ["line1", "line2"]
    assert lines[4] == lines[1].split("<<", 1)[1]


def test_set_output_without_output_file(capsys):
    workflow.set_output("imageDigests", "{}", {})

    assert capsys.readouterr().out == "imageDigests={}\n"


def test_formatter_renders_workflow_commands():
    formatter = workflow.WorkflowCommandFormatter("%(message)s")

    def record(level, msg):
        return logging.LogRecord("x", level, __file__, 1, msg, None, None)

    assert formatter.format(record(logging.INFO, "hello")) == "hello"
    assert formatter.format(record(logging.WARNING, "careful")) == "::warning::careful"
    assert formatter.format(record(logging.ERROR, "a\nb 100%")) == "::error::a%0Ab 100%25"


def test_set_failed_emits_error(capsys):
    workflow.configure_logging()

    workflow.set_failed("it broke")

    assert "::error::it broke" in capsys.readouterr().out
