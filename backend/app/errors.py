"""Error taxonomy for the Sharebox API.

Every error carries the HTTP status it maps to. ``app.main`` registers a
single exception handler that turns any ``ShareboxError`` into a JSON body of
the form ``{"detail": "<message>"}`` (the same shape FastAPI uses for
``HTTPException``), so messages raised deep in the upload pipeline reach the
client verbatim.

Hierarchy:
    ShareboxError
    ├── BadRequestError (400)       malformed multipart framing, decode errors
    ├── NotFoundError (404)         unknown stored file
    ├── InternalError (500)         directory / file write failures
    └── NotImplementedFeatureError (501)  disabled feature stub
"""


class ShareboxError(Exception):
    """Base class for errors that terminate a request."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(ShareboxError):
    status_code = 400


class NotFoundError(ShareboxError):
    status_code = 404


class InternalError(ShareboxError):
    status_code = 500


class NotImplementedFeatureError(ShareboxError):
    status_code = 501
