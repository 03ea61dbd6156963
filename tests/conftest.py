import logging

import pytest

from devcontainer_publish.config import BuildRequest
from devcontainer_publish.workflow import PACKAGE_LOGGER

DIGEST_A = "sha256:" + "a" * 64
DIGEST_B = "sha256:" + "b" * 64
DIGEST_C = "sha256:" + "0123456789abcdef" * 4


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def make_request(tmp_path):
    def factory(**overrides):
        values = {
            "workspace_folder": tmp_path,
            "archive_path": tmp_path / "output.tar",
        }
        values.update(overrides)
        return BuildRequest(**values)

    return factory
