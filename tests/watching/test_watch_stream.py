import asyncio

import aiohttp.web
import pytest

from kubeaccess._cogs.clients.errors import APIError, DeadlineExceededError, DecodeError, \
                                            StreamClosedError
from kubeaccess._cogs.structs.envelopes import EventType, Object
from kubeaccess._core.access.generic import ResourceClient
from kubeaccess._core.access.streaming import WatchState, WatchStream

NAMESPACED_URL = '/apis/kubeaccess.dev/v1/namespaces/ns/kubeexamples'

STREAM_WITH_NORMAL_EVENTS = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '1'}}},
    {'type': 'MODIFIED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '2'}}},
    {'type': 'DELETED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '3'}}},
]
STREAM_WITH_UNKNOWN_EVENT = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '1'}}},
    {'type': 'UNKNOWN', 'object': {'metadata': {'resourceVersion': '99'}}},
    {'type': 'ADDED', 'object': {'metadata': {'name': 'b', 'resourceVersion': '2'}}},
]
STREAM_WITH_ERROR_410GONE = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '1'}}},
    {'type': 'ERROR', 'object': {'kind': 'Status', 'code': 410, 'reason': 'Expired',
                                 'message': 'too old resource version'}},
    {'type': 'ADDED', 'object': {'metadata': {'name': 'b', 'resourceVersion': '2'}}},
]
STREAM_WITH_MALFORMED_LINE = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '1'}}},
    b'{"type": "ADDED", "object": \n',
    {'type': 'ADDED', 'object': {'metadata': {'name': 'b', 'resourceVersion': '2'}}},
]
STREAM_WITH_MALFORMED_EVENT = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '1'}}},
    {'type': 'ADDED', 'object': {'metadata': {'resourceVersion': '2'}}},
    {'type': 'ADDED', 'object': {'metadata': {'name': 'b', 'resourceVersion': '3'}}},
]
STREAM_WITH_BOOKMARKS = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '1'}}},
    {'type': 'BOOKMARK', 'object': {'kind': 'KubeExample', 'metadata': {'resourceVersion': '5'}}},
]


class SampleException(Exception):
    pass




@pytest.fixture()
def client(context, namespaced_resource, settings, logger):
    return ResourceClient(context, namespaced_resource, Object, settings=settings, logger=logger)


async def test_nothing_is_requested_on_creation(resp_mocker, aresponses, hostname, client):
    get_mock = resp_mocker(return_value=aiohttp.web.Response(body=b''))
    aresponses.add(hostname, aresponses.ANY, 'get', get_mock)
    stream = client.watch_namespaced('ns')
    assert stream.state == WatchState.CONNECTING
    assert not get_mock.called


async def test_empty_stream_yields_nothing(stream, client):
    stream.feed([])

    events = []
    async with client.watch_namespaced('ns') as watch:
        async for event in watch:
            events.append(event)

    assert events == []
    assert watch.state == WatchState.CLOSED


async def test_event_stream_yields_everything_in_order(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    events = []
    async with client.watch_namespaced('ns') as watch:
        async for event in watch:
            events.append(event)

    assert [event.type for event in events] == [EventType.ADDED, EventType.MODIFIED, EventType.DELETED]
    assert [event.object.metadata.resource_version for event in events] == ['1', '2', '3']
    assert all(isinstance(event.object, Object) for event in events)
    assert watch.resource_version == '3'
    assert watch.state == WatchState.CLOSED


async def test_watching_params(stream, client):
    mock = stream.feed([])

    watch = client.watch_namespaced('ns', label_selector='app=x', field_selector='f=v',
                                    resource_version='5', timeout=30)
    async with watch:
        async for _ in watch:
            pass

    assert dict(mock.call_args[0][0].query) == {
        'watch': 'true',
        'resourceVersion': '5',
        'allowWatchBookmarks': 'true',
        'labelSelector': 'app=x',
        'fieldSelector': 'f=v',
        'timeoutSeconds': '31',
    }


@pytest.mark.parametrize('timeout, expected', [
    (0.3, '2'),
    (1, '2'),
    (1.5, '3'),
    (59.9, '61'),
])
async def test_server_timeout_is_beyond_the_client_deadline(stream, client, timeout, expected):
    mock = stream.feed([])

    async with client.watch_namespaced('ns', timeout=timeout) as watch:
        async for _ in watch:
            pass

    assert mock.call_args[0][0].query['timeoutSeconds'] == expected
    assert float(expected) > timeout


async def test_watching_params_from_settings(stream, client, settings):
    settings.watching.allow_bookmarks = False
    settings.watching.server_timeout = 123
    mock = stream.feed([])

    async with client.watch_namespaced('ns') as watch:
        async for _ in watch:
            pass

    assert dict(mock.call_args[0][0].query) == {'watch': 'true', 'timeoutSeconds': '123'}


async def test_watching_clusterwide(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS, url='/apis/kubeaccess.dev/v1/kubeexamples')
    async with client.watch() as watch:
        events = [event async for event in watch]
    assert len(events) == 3


async def test_cursor_moves_only_when_the_event_is_handled(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    async with client.watch_namespaced('ns', resource_version='0') as watch:
        event = await watch.__anext__()
        assert event.resource_version == '1'
        assert watch.resource_version == '0'
        event = await watch.__anext__()
        assert event.resource_version == '2'
        assert watch.resource_version == '1'

    assert watch.resource_version == '2'
    assert watch.state == WatchState.CLOSED


async def test_cursor_does_not_move_on_failures_in_the_block(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    with pytest.raises(SampleException):
        async with client.watch_namespaced('ns', resource_version='0') as watch:
            async for event in watch:
                if event.resource_version == '2':
                    raise SampleException()

    assert watch.resource_version == '1'


async def test_bookmarks_move_the_cursor(stream, client):
    stream.feed(STREAM_WITH_BOOKMARKS)

    async with client.watch_namespaced('ns') as watch:
        events = [event async for event in watch]

    assert [event.type for event in events] == [EventType.ADDED, EventType.BOOKMARK]
    assert events[1].object is None
    assert events[1].resource_version == '5'
    assert watch.resource_version == '5'


async def test_unknown_event_type_is_ignored(stream, client, assert_logs):
    stream.feed(STREAM_WITH_UNKNOWN_EVENT)

    async with client.watch_namespaced('ns') as watch:
        events = [event async for event in watch]

    assert [event.object.name for event in events] == ['a', 'b']
    assert watch.resource_version == '2'
    assert_logs([r"Ignoring an unsupported event type: 'UNKNOWN'"])


async def test_error_event_is_delivered_and_then_escalated(stream, client):
    stream.feed(STREAM_WITH_ERROR_410GONE)

    events = []
    with pytest.raises(StreamClosedError) as err:
        async with client.watch_namespaced('ns') as watch:
            async for event in watch:
                events.append(event)

    assert [event.type for event in events] == [EventType.ADDED, EventType.ERROR]
    assert events[1].status.code == 410
    assert err.value.status.code == 410
    assert err.value.status.reason == 'Expired'
    assert watch.state == WatchState.ERROR
    assert watch.resource_version == '1'


async def test_malformed_line_stops_the_stream(stream, client):
    stream.feed(STREAM_WITH_MALFORMED_LINE)

    watch = client.watch_namespaced('ns')
    event = await watch.__anext__()
    assert event.object.name == 'a'

    with pytest.raises(DecodeError):
        await watch.__anext__()
    assert watch.state == WatchState.ERROR

    with pytest.raises(StopAsyncIteration):
        await watch.__anext__()
    await watch.close()


async def test_malformed_line_closes_the_open_connection(stream, client, context):
    stream.feed(STREAM_WITH_MALFORMED_LINE[:2], hang=10)

    events = []
    with pytest.raises(DecodeError):
        async for event in client.watch_namespaced('ns'):
            events.append(event)

    assert [event.object.name for event in events] == ['a']
    assert [response for response in context.responses if not response.closed] == []


async def test_malformed_event_stops_the_stream(stream, client):
    stream.feed(STREAM_WITH_MALFORMED_EVENT)

    events = []
    with pytest.raises(DecodeError) as err:
        async with client.watch_namespaced('ns') as watch:
            async for event in watch:
                events.append(event)

    assert [event.object.name for event in events] == ['a']
    assert err.value.path == 'object.metadata'
    assert watch.state == WatchState.ERROR


async def test_api_errors_escalate_on_connecting(aresponses, hostname, client):
    aresponses.add(hostname, NAMESPACED_URL, 'get', aiohttp.web.json_response(
        {'kind': 'Status', 'code': 403}, status=403))

    watch = client.watch_namespaced('ns')
    with pytest.raises(APIError) as err:
        await watch.__anext__()
    assert err.value.status == 403
    assert watch.state == WatchState.ERROR


async def test_deadline_is_exceeded(stream, client, context, looptime):
    mock = stream.feed(STREAM_WITH_NORMAL_EVENTS[:1], hang=10)

    events = []
    with pytest.raises(DeadlineExceededError):
        async with client.watch_namespaced('ns', timeout=1.23) as watch:
            async for event in watch:
                events.append(event)

    assert looptime == 1.23
    assert len(events) == 1
    assert watch.state == WatchState.ERROR
    assert mock.call_args[0][0].query['timeoutSeconds'] == '3'
    assert [response for response in context.responses if not response.closed] == []


async def test_handler_receives_all_events(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    events = []
    watch = client.watch_namespaced('ns')
    await watch.run(events.append)

    assert len(events) == 3
    assert watch.resource_version == '3'
    assert watch.state == WatchState.CLOSED


async def test_async_handler_can_stop_the_stream(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    events = []

    async def handler(event):
        await asyncio.sleep(0)
        events.append(event)
        return False if event.resource_version == '2' else None

    watch = client.watch_namespaced('ns')
    await watch.run(handler)

    assert len(events) == 2
    assert watch.resource_version == '2'
    assert watch.state == WatchState.CLOSED


async def test_falsy_results_do_not_stop_the_stream(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    events = []

    def handler(event):
        events.append(event)
        return 0

    await client.watch_namespaced('ns').run(handler)
    assert len(events) == 3


async def test_handler_errors_escalate(stream, client):
    stream.feed(STREAM_WITH_NORMAL_EVENTS)

    def handler(event):
        if event.resource_version == '2':
            raise SampleException()

    watch = client.watch_namespaced('ns')
    with pytest.raises(SampleException):
        await watch.run(handler)

    assert watch.resource_version == '1'


async def test_raw_watcher_is_called_with_the_cursor():
    calls = []

    async def watcher(**kwargs):
        calls.append(kwargs)
        yield {'type': 'ADDED', 'object': {'metadata': {'name': 'a', 'resourceVersion': '7'}}}

    watch = WatchStream(watcher, Object, resource_version='5', timeout=10)
    events = [event async for event in watch]

    assert calls == [{'since': '5', 'timeout': 10}]
    assert len(events) == 1
    assert watch.resource_version == '7'
