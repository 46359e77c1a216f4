"""Custom exceptions.

greader reports every failure through a small hierarchy rooted at
``ReaderError``. The subclass (and its ``category``) says what went wrong:

- ``CredentialError``: username/password rejected or missing
- ``ResponseFormatError``: the service answered, but not in the expected shape
- ``RequestFailure``: transport failure or non-2xx status
- ``OperationFailure``: well-formed response without the ``OK`` marker
- ``ValidationError``: malformed feed id passed by the caller

Example:
    >>> from greader.core.exceptions import ReaderError, RequestFailure
    >>> err = RequestFailure("api/0/token", has_body=False, status_code=502)
    >>> isinstance(err, ReaderError)
    True
    >>> err.category
    'request'
"""

from __future__ import annotations


class ReaderError(Exception):
    """Base exception for greader.

    Example:
        >>> from greader.core.exceptions import ReaderError
        >>> e = ReaderError("something went wrong")
        >>> str(e)
        'something went wrong'
    """

    category = "reader"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class CredentialError(ReaderError):
    """Username/password are missing or were rejected by the service.

    Not retryable: the same credentials will fail again.
    """

    category = "credentials"


def _with_body(has_body: bool) -> str:
    return "(with additional POST data) " if has_body else ""


class ResponseFormatError(ReaderError):
    """Response body could not be interpreted.

    Usually means the remote API contract changed.

    Example:
        >>> from greader.core.exceptions import ResponseFormatError
        >>> err = ResponseFormatError("api/0/unread-count?output=json")
        >>> err.path
        'api/0/unread-count?output=json'
        >>> err.has_body
        False
    """

    category = "response_format"

    def __init__(
        self,
        path: str,
        has_body: bool = False,
        reason: str = "wasn't in the expected format",
        cause: Exception | None = None,
    ) -> None:
        super().__init__(f"Response from '{path}' {_with_body(has_body)}{reason}.", cause)
        self.path = path
        self.has_body = has_body


class RequestFailure(ReaderError):
    """Request could not be completed (network error, timeout, non-2xx).

    Example:
        >>> from greader.core.exceptions import RequestFailure
        >>> err = RequestFailure("api/0/edit-tag", has_body=True, status_code=500)
        >>> err.status_code
        500
        >>> "with additional POST data" in str(err)
        True
    """

    category = "request"

    def __init__(
        self,
        path: str,
        has_body: bool = False,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        status = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(
            f"Request to '{path}' {_with_body(has_body)}failed{status}: "
            "there are problems with access to the API.",
            cause,
        )
        self.path = path
        self.has_body = has_body
        self.status_code = status_code


class OperationFailure(ReaderError):
    """Mutating call answered without the ``OK`` success marker.

    Example:
        >>> from greader.core.exceptions import OperationFailure
        >>> OperationFailure("tag:1", "Mark entry 'tag:1' as read failed").target_id
        'tag:1'
    """

    category = "operation"

    def __init__(self, target_id: str, message: str) -> None:
        super().__init__(message)
        self.target_id = target_id


class ValidationError(ReaderError):
    """Caller passed malformed data, e.g. a feed id without ``feed/``.

    Example:
        >>> from greader.core.exceptions import ValidationError
        >>> raise ValidationError("invalid format")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ValidationError: invalid format
    """

    category = "validation"


class ConfigurationError(ReaderError):
    """Configuration is invalid or incomplete."""

    category = "configuration"
