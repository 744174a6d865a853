"""
All configuration flags, options, settings to fine-tune the API access.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

The settings are plain data: nothing is read from the environment variables
or files here. The settings object is created by the caller (or defaulted)
and passed to the resource clients explicitly.

Some of the settings are flags, some are scalars, some are optional,
some are not (but all of them have reasonable defaults).
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout (in seconds) for all regular (non-streaming) API requests.
    Includes the connection time, the request sending, and the response reading.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout (in seconds) for establishing the connection to the API server.
    If ``None``, only the total ``request_timeout`` applies.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request, as requested from the server
    (``timeoutSeconds``). It is only used when a watch has no own timeout.
    If ``None``, then obey the server-side timeouts (they seem to be random).
    """

    client_timeout: Optional[float] = None
    """
    An HTTP/HTTPS session timeout to use in watch requests.
    """

    connect_timeout: Optional[float] = None
    """
    An HTTP/HTTPS connection timeout to use in watch requests.
    If ``None``, the networking's connection or request timeouts are used.
    """

    allow_bookmarks: bool = True
    """
    Should the server be asked to send the ``BOOKMARK`` events?

    Bookmarks only advance the resource version of a watch-stream,
    so that a re-connected watch does not start from a compacted version.
    """


@dataclasses.dataclass
class PagingSettings:

    page_size: int = 500
    """
    How many items to request per page when paginating over the listings.

    It is a hint to the server, not a hard limit: the server can return fewer
    items and a continuation token, or ignore the limit entirely.
    """


@dataclasses.dataclass
class PollingSettings:

    interval: float = 1.0
    """
    How long to sleep (in seconds) between the re-reads of an object
    when waiting for its readiness or a specific phase.
    """

    timeout: float = 5 * 60
    """
    How long to wait (in seconds) for an object to reach the expected state
    unless a timeout is passed explicitly.
    """


@dataclasses.dataclass
class ApplyingSettings:

    field_manager: str = 'kubeaccess'
    """
    The field manager to report in the server-side apply requests.
    The server tracks the ownership of the applied fields by this name.
    """


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
    paging: PagingSettings = dataclasses.field(default_factory=PagingSettings)
    polling: PollingSettings = dataclasses.field(default_factory=PollingSettings)
    applying: ApplyingSettings = dataclasses.field(default_factory=ApplyingSettings)
