"""Exceptions raised while building and publishing dev container images."""


class PublisherError(Exception):
    """Base exception for fatal errors in a build-and-publish run."""

    pass


class InputError(PublisherError):
    """Raised when a job input cannot be parsed."""

    pass


class ConfigurationConflict(PublisherError):
    """Raised when job inputs contradict each other."""

    pass


class PrerequisiteMissing(PublisherError):
    """Raised when a required external tool is absent and cannot be installed."""

    pass


class BuildFailure(PublisherError):
    """Raised when the dev container build reports a non-success outcome."""

    def __init__(self, message: str, code=None, description=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.description = description


class PublishFailure(PublisherError):
    """Raised when an image transfer to the registry fails."""

    pass


class DigestResolutionFailure(PublisherError):
    """Raised when a registry manifest does not yield a usable digest.

    Never fatal: the resolver downgrades it to a warning.
    """

    pass
