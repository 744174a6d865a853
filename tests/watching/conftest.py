import asyncio
import json
from unittest.mock import Mock

import aiohttp.web
import pytest

NAMESPACED_URL = '/apis/kubeaccess.dev/v1/namespaces/ns/kubeexamples'


def render_lines(events):
    return b''.join(event if isinstance(event, bytes) else json.dumps(event).encode() + b'\n'
                    for event in events)


@pytest.fixture()
def stream(mocker, resp_mocker, aresponses, hostname):
    """ A mock for the stream of events as if returned by K8s API. """

    def feed(events, *, url=NAMESPACED_URL, hang=None):
        """
        Serve the events (or raw lines as bytes) for the next watch-request.

        If ``hang`` is set, the connection stays open after the events
        for that many seconds instead of closing right away.
        """
        body = render_lines(events)

        async def hanging_resp(request):
            response = aiohttp.web.StreamResponse()
            await response.prepare(request)
            await response.write(body)
            await asyncio.sleep(hang)
            return response

        if hang is None:
            mock = resp_mocker(return_value=aiohttp.web.Response(body=body))
        else:
            mock = mocker.AsyncMock(side_effect=hanging_resp)
        aresponses.add(hostname, url, 'get', mock)
        return mock

    return Mock(spec_set=['feed'], feed=feed)
