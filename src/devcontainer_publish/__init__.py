"""devcontainer-publish: build, tag and publish dev container images from CI."""

__version__ = "0.1"
