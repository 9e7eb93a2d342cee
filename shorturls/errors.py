"""Error kinds raised by the shortener core.

Every user-visible failure is a ``ShortenerError`` carrying the HTTP status
and the public message it maps to; the routes layer turns them into JSON
responses with a single exception handler.
"""

__all__ = [
    "ShortenerError",
    "InvalidUrl",
    "InvalidValidity",
    "InvalidShortcode",
    "ShortcodeTaken",
    "AllocationExhausted",
    "LinkNotFound",
    "LinkExpired",
    "UniquenessViolation",
]


class ShortenerError(Exception):
    """Base class for failures reported to API callers."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class InvalidUrl(ShortenerError):
    status_code = 400
    message = 'Invalid "url". Must be http/https.'


class InvalidValidity(ShortenerError):
    status_code = 400
    message = '"validity" must be a positive integer (minutes).'


class InvalidShortcode(ShortenerError):
    status_code = 400
    message = 'Invalid "shortcode". Use 4-20 alphanumeric characters.'


class ShortcodeTaken(ShortenerError):
    status_code = 409
    message = "Shortcode already in use."


class AllocationExhausted(ShortenerError):
    status_code = 500
    message = "Failed to generate unique shortcode. Try again."


class LinkNotFound(ShortenerError):
    status_code = 404
    message = "Shortcode not found."


class LinkExpired(ShortenerError):
    status_code = 410
    message = "Link expired."


class UniquenessViolation(Exception):
    """Raised by the store when a shortcode insert loses to an existing row."""

    def __init__(self, shortcode: str):
        super().__init__(f"shortcode '{shortcode}' already exists")
        self.shortcode = shortcode
