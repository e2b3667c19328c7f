"""Error taxonomy shared by the engine, the drivers and the remote providers.

Provider implementations translate SDK exceptions into these classes so the
drivers can decide what is benign (``NotFoundError`` on cleanup), what falls
back to adoption (``ConflictError`` on zone creation) and what propagates
unchanged for an outer retry (``TransientError``).
"""

from __future__ import annotations


class ParkedDomainError(Exception):
    """Base class for all operator errors.

    ``code`` carries the remote error code when the error was translated
    from an SDK exception.
    """

    def __init__(self, message: str = "", code: str = ""):
        super().__init__(message)
        self.code = code


class NotFoundError(ParkedDomainError):
    """The remote resource (or the intent) does not exist."""


class TransientError(ParkedDomainError):
    """Throttling, network or server-side failure; retry later."""


class ConfigurationError(ParkedDomainError):
    """The intent or the operator configuration cannot be satisfied as is."""


class TemplateNotFoundError(ConfigurationError):
    """The requested template key or its collection does not exist."""


class ConflictError(ParkedDomainError):
    """A name is already taken or an optimistic-concurrency check failed."""


class StageError(ParkedDomainError):
    """A reconciliation stage failed.

    Keeps the stage name next to the underlying cause so the status
    reporter and the kopf handler can both describe where convergence
    stopped.
    """

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage}: {cause}")
        self.stage = stage
        self.cause = cause
