"""Error taxonomy for the link lifecycle.

::
    ShortlinkError
    ├─ ValidationError        caller input, raised before any store call
    │   ├─ InvalidURLError
    │   ├─ URLTooLongError
    │   └─ InvalidTTLError
    ├─ NotFoundError          bad code, cache miss/expiry, missing analytic row
    ├─ StoreError             any cache or durable store failure
    └─ InvalidCodeError       encoder could not decode a short code
"""

__all__ = [
    "ShortlinkError",
    "ValidationError",
    "InvalidURLError",
    "URLTooLongError",
    "InvalidTTLError",
    "NotFoundError",
    "StoreError",
    "InvalidCodeError",
]


class ShortlinkError(Exception):
    default_message = "short link error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class ValidationError(ShortlinkError):
    default_message = "invalid request"


class InvalidURLError(ValidationError):
    default_message = "invalid URL: must be a valid HTTP or HTTPS URL"


class URLTooLongError(ValidationError):
    default_message = "URL too long: maximum length is 2048 characters"


class InvalidTTLError(ValidationError):
    default_message = "invalid TTL: must be between 1 hour and 1 week"


class NotFoundError(ShortlinkError):
    default_message = "short code not found or expired"


class StoreError(ShortlinkError):
    default_message = "store operation failed"


class InvalidCodeError(ShortlinkError):
    default_message = "invalid short code"
