"""
Watching and streaming the raw watch-events.

A single watch request is made and streamed until the server closes it,
either by its own timeout (sent as ``timeoutSeconds``) or by a disconnect.
Every line of the response is a JSON-encoded event, which is yielded as is.

There is no re-connection here: once the stream is over, the generator is over.
The consumers can continue watching from the last seen resource version
(see `kubeaccess.WatchStream`), or re-list the objects if it is too old.
"""
import contextlib
import logging
import math
from typing import AsyncIterator, Dict, Optional

import aiohttp

from kubeaccess._cogs.clients import api, auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.structs import bodies, references

logger = logging.getLogger(__name__)


async def watch_objs(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        since: Optional[str] = None,
        label_selector: Optional[str] = None,
        field_selector: Optional[str] = None,
        timeout: Optional[float] = None,
) -> AsyncIterator[bodies.RawInput]:
    """
    Watch objects of a specific resource type.

    The cluster-wide call is used if the namespace is ``None``;
    otherwise, the watching is restricted to that namespace.

    The timeout, if set, is the client-side deadline of the watch request,
    and the server is asked to end the stream a second after it, so that the
    deadline is noticed by the client rather than seen as a normal end.
    If not set, the configured server timeout is used (or none at all).
    """
    params: Dict[str, str] = {}
    params['watch'] = 'true'
    if since is not None:
        params['resourceVersion'] = since
    if settings.watching.allow_bookmarks:
        params['allowWatchBookmarks'] = 'true'
    if label_selector is not None:
        params['labelSelector'] = label_selector
    if field_selector is not None:
        params['fieldSelector'] = field_selector
    if timeout is not None:
        params['timeoutSeconds'] = str(math.ceil(timeout) + 1)
    elif settings.watching.server_timeout is not None:
        params['timeoutSeconds'] = str(max(1, int(settings.watching.server_timeout)))

    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )

    # Stream the parsed events from the response until it is closed server-side.
    async with contextlib.aclosing(api.stream(
        url=resource.get_url(namespace=namespace, params=params),
        context=context,
        settings=settings,
        logger=logger,
        timeout=aiohttp.ClientTimeout(
            total=settings.watching.client_timeout,
            sock_connect=connect_timeout,
        ),
    )) as raw_inputs:
        async for raw_input in raw_inputs:
            yield raw_input
