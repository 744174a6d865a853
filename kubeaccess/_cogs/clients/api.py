import asyncio
import json
from typing import Any, AsyncIterator, Dict, Mapping, Optional

import aiohttp
import yaml

from kubeaccess._cogs.clients import auth, errors
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs

# Low-level errors of the connection: they are all reported as `errors.TransportError`.
TRANSPORT_ERRORS = (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)

# The responses which never have a body, even if the server sends one (aiohttp drops it).
BODILESS_STATUSES = frozenset({204, 205, 304})


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        content_type: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Perform a single request and check the response for K8s API errors.

    The response is returned unread, so that it can be either fully parsed
    or streamed line by line. There are no retries: the errors are escalated
    to the caller as they are, either as `errors.APIError` (for HTTP statuses)
    or as `errors.TransportError` (for the connection-level failures).

    The payload is serialised as JSON unless the content type says otherwise:
    YAML payloads (e.g. for the server-side apply) are dumped with PyYAML.
    """
    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    all_headers: Dict[str, str] = dict(headers or {})
    data: Optional[str] = None
    if payload is not None and content_type is not None:
        all_headers['Content-Type'] = content_type
        if content_type.endswith('yaml'):
            data = yaml.safe_dump(payload, default_flow_style=False)
        else:
            data = json.dumps(payload)
        payload = None

    what = f"{method.upper()} {url}"
    logger.debug(f"Request: {what}")
    try:
        response = await context.session.request(
            method=method,
            url=url,
            json=payload,
            data=data,
            headers=all_headers,
            timeout=timeout,
        )
        await errors.check_response(response)  # but do not parse it!
    except TRANSPORT_ERRORS as e:
        logger.debug(f"Request failed: {what} -> {e!r}")
        raise errors.TransportError(str(e) or repr(e)) from e

    context.add_response(response)
    return response


async def read_json(
        response: aiohttp.ClientResponse,
) -> Any:
    """
    Read the whole response and parse it as JSON; fail on malformed bodies.
    """
    async with response:
        try:
            data = await response.read()
        except TRANSPORT_ERRORS as e:
            raise errors.TransportError(str(e) or repr(e)) from e
    if not data and response.status in BODILESS_STATUSES:
        return None
    return parse_json(data)


def parse_json(
        data: bytes,
) -> Any:
    try:
        return json.loads(data.decode('utf-8'))
    except ValueError as e:  # incl. json.JSONDecodeError & UnicodeDecodeError
        snippet = data[:100].decode('utf-8', errors='replace')
        raise errors.DecodeError(f"The response is not a valid JSON: {snippet!r}") from e


async def get(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    return await read_json(response)


async def get_text(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> str:
    response = await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    async with response:
        try:
            data = await response.read()
        except TRANSPORT_ERRORS as e:
            raise errors.TransportError(str(e) or repr(e)) from e
    return data.decode('utf-8', errors='replace')


async def post(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='post',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    return await read_json(response)


async def put(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='put',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    return await read_json(response)


async def patch(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        content_type: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='patch',
        url=url,
        payload=payload,
        content_type=content_type,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    return await read_json(response)


async def delete(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='delete',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    return await read_json(response)


async def stream(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> AsyncIterator[Any]:
    """
    Stream the JSON documents line by line, as in the watch-streams.

    The connection failures before the streaming has started are escalated.
    A disconnect in the middle of the stream is its natural end: the server
    closes the long-running requests at its own discretion.
    A malformed line fails the stream and closes the response.
    """
    response = await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    async with response:
        try:
            async for line in iter_jsonlines(response.content):
                yield parse_json(line)
        except TRANSPORT_ERRORS as e:
            logger.debug(f"The stream is disconnected: {e!r}")


async def stream_lines(
        url: str,  # relative to the server/api root.
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> AsyncIterator[bytes]:
    response = await request(
        method='get',
        url=url,
        headers=headers,
        timeout=timeout,
        context=context,
        settings=settings,
        logger=logger,
    )
    async with response:
        try:
            async for line in iter_jsonlines(response.content):
                yield line
        except TRANSPORT_ERRORS as e:
            logger.debug(f"The stream is disconnected: {e!r}")


async def iter_jsonlines(
        content: aiohttp.StreamReader,
        chunk_size: int = 1024 * 1024,
) -> AsyncIterator[bytes]:
    """
    Iterate line by line over the response's content.

    Usage::

        async for line in iter_jsonlines(response.content):
            pass

    This is an equivalent of::

        async for line in response.content:
            pass

    Except that the aiohttp's line iteration fails if the accumulated buffer
    length is above 2**17 bytes, i.e. 128 KB (`aiohttp.streams.DEFAULT_LIMIT`
    for the buffer's low-watermark, multiplied by 2 for the high-watermark).
    Kubernetes objects and log lines can be much longer, up to MBs in length.

    The chunk size of 1MB keeps the memory footprint reasonably low on huge
    amounts of small lines, while ensuring the near-instant reads of huge lines.
    Empty lines are skipped.
    """

    # Keep at most 2 copies of a yielded line in memory (in the buffer and as a yielded value),
    # and at most 1 copy of other lines (in the buffer).
    buffer = b''
    async for data in content.iter_chunked(chunk_size):
        buffer += data
        del data

        start = 0
        index = buffer.find(b'\n', start)
        while index >= 0:
            line = buffer[start:index]
            if line:
                yield line
            del line
            start = index + 1
            index = buffer.find(b'\n', start)

        if start > 0:
            buffer = buffer[start:]

    if buffer:
        yield buffer
