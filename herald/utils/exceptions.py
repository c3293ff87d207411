"""Custom exceptions for the registry watcher and publish pipeline

This module defines the exception hierarchy:
- Base exception for all herald errors
- Polling errors (transport, bad registry responses)
- Publishing errors (dedup store, message formatting, feed posting)

All exceptions inherit from HeraldError to allow catching everything raised
by the watcher or publisher in a single except block when needed.
"""


class HeraldError(Exception):
    """Base exception for all herald errors

    Use this to catch any error raised by the watcher or publisher:
    ```python
    try:
        await publisher.tweet(pkg)
    except HeraldError as e:
        logger.error("publish_failed", error=str(e))
    ```
    """

    pass


class RetryableError(HeraldError):
    """Base for retryable errors (timeouts, connection errors).

    Errors that inherit from this class indicate transient failures
    that may succeed on retry.
    """

    pass


class TransportError(RetryableError):
    """Network failure reaching the registry or the feed

    Raised when:
    - Connection refused / DNS failure
    - Request timeout
    - Connection reset mid-response
    """

    pass


class BadResponseError(HeraldError):
    """Registry answered, but not with something usable

    Raised when:
    - HTTP status is not 200
    - Body is not valid JSON
    - Body is not a keyed document or lacks the updated-through cursor
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StoreError(HeraldError):
    """Dedup store lookup or insert failed

    The publish attempt is aborted before anything is posted. Retrying the
    whole publish is safe: lookups are idempotent and inserts only happen
    after a clean miss.
    """

    pass


class FormatError(HeraldError):
    """Outbound message template could not be rendered

    Raised when:
    - Template references an unknown placeholder
    - Template contains an invalid placeholder

    Fatal to the single publish attempt only.
    """

    pass


class FeedPostError(HeraldError):
    """Posting to the social feed failed

    Raised when:
    - Feed API returns an error status
    - Authentication against the feed failed
    - Network errors while posting
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigValidationError(HeraldError):
    """Configuration validation failed"""

    pass
