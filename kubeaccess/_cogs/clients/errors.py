"""
K8s API errors.

The underlying client library (now, ``aiohttp``) can be replaced in the future.
We cannot rely on embedding its exceptions all over the code of the library.
Hence, we have our own hierarchy of exceptions for K8s API errors.

Low-level errors, such as the network connectivity issues, SSL/HTTPS issues,
timeouts, are wrapped into `TransportError` with the original error chained
as its cause -- for better explainability of errors in the stack traces.
Their messages are preserved as they are.

Some selected reasons of K8s API errors are made into their own classes,
so that they could be intercepted and handled in other places of the library.
All other reasons are raised as the base error class and are indistinguishable
from each other (except via the exception's fields).

Unlike the underlying client library's errors, the K8s API errors contain more
information about the reasons -- as provided by K8s API in its response bodies,
not guessed only by HTTP statuses alone.
"""
import collections.abc
import json
from typing import Any, Collection, Optional

import aiohttp
from typing_extensions import Literal, TypedDict


class RawStatusCause(TypedDict, total=False):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict, total=False):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.19/#status-v1-meta
class RawStatus(TypedDict, total=False):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


class KubeAccessError(Exception):
    """ A base class for all errors of this library. """


class TransportError(KubeAccessError):
    """
    Raised when the API cannot be reached or the connection breaks.

    The original error of the client library is chained as the cause.
    """


class DecodeError(KubeAccessError, ValueError):
    """
    Raised when the API response does not match the expected shape.

    The ``path`` is a dot-separated location of the offending field,
    e.g. ``items[3].metadata.name``, or an empty string for the whole document.
    """

    def __init__(self, message: str, *, path: str = '') -> None:
        super().__init__(message)
        self.path = path


class DeadlineExceededError(KubeAccessError, TimeoutError):
    """
    Raised when an operation did not finish before its deadline.
    """


class StreamClosedError(KubeAccessError):
    """
    Raised when a watch-stream is closed by the server with an error.

    The server considers the watch session invalid past that point,
    e.g. when the requested resource version is too old (compacted).
    """

    def __init__(self, message: str, *, status: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status = status


class APIError(KubeAccessError):

    def __init__(
            self,
            payload: Optional[RawStatus],
            *,
            status: int,
    ) -> None:
        message = payload.get('message') if payload else None
        super().__init__(message, payload)
        self._status = status
        self._payload = payload

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return self._payload.get('code') if self._payload else None

    @property
    def reason(self) -> Optional[str]:
        return self._payload.get('reason') if self._payload else None

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message') if self._payload else None

    @property
    def details(self) -> Optional[RawStatusDetails]:
        return self._payload.get('details') if self._payload else None


class APIUnauthorizedError(APIError):
    pass


class APIForbiddenError(APIError):
    pass


class APINotFoundError(APIError):
    pass


class APIConflictError(APIError):
    pass


class APIGoneError(APIError):
    pass


def not_found(message: str) -> APINotFoundError:
    """
    Build a not-found error without an actual API call (for unaddressable paths).
    """
    payload: RawStatus = {
        'kind': 'Status',
        'apiVersion': 'v1',
        'status': 'Failure',
        'reason': 'NotFound',
        'message': message,
        'code': 404,
    }
    return APINotFoundError(payload, status=404)


async def check_response(
        response: aiohttp.ClientResponse,
) -> None:
    """
    Check for specialised K8s errors, and raise with extended information.
    """
    if response.status >= 400:

        # Read the response's body before it is closed by raise_for_status().
        payload: Optional[RawStatus]
        try:
            payload = json.loads(await response.read())
        except (ValueError, aiohttp.ClientConnectionError, aiohttp.ClientPayloadError):
            payload = None

        # Better be safe: who knows which sensitive information can be dumped unless kind==Status.
        if not isinstance(payload, collections.abc.Mapping) or payload.get('kind') != 'Status':
            payload = None

        reason = payload.get('reason') if payload else None
        cls = (
            APIUnauthorizedError if response.status == 401 else
            APIForbiddenError if response.status == 403 else
            APINotFoundError if response.status == 404 or reason == 'NotFound' else
            APIConflictError if response.status == 409 else
            APIGoneError if response.status == 410 else
            APIError
        )

        # Raise the library-specific error while keeping the original error in scope.
        # This call also closes the response's body, so it cannot be read afterwards.
        try:
            response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise cls(payload, status=response.status) from e
