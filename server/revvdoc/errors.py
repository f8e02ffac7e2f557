"""Domain exceptions surfaced to API callers.

Each exception carries the HTTP status it maps to. The FastAPI exception
handler in ``revvdoc.main`` renders them as ``{"error": message}``.
"""


class ServiceError(Exception):
    """Base class for every error the service reports to callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(ServiceError):
    """Malformed input; the caller must correct and resubmit."""

    status_code = 400


class UnauthenticatedError(ServiceError):
    """Missing or invalid credential."""

    status_code = 401


class ForbiddenError(ServiceError):
    """Authenticated, but not entitled to the operation."""

    status_code = 403


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictError(ServiceError):
    """State precondition violated (illegal transition, lost race)."""

    status_code = 409


class UpstreamFailure(ServiceError):
    """A best-effort call to an external collaborator failed.

    Inside best-effort boundaries it is logged and dropped; read endpoints
    backed by an external API surface it as 502.
    """

    status_code = 502
