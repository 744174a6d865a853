import logging
import re

import pytest

from kubeaccess._cogs.clients.auth import APIContext
from kubeaccess._cogs.configs.configuration import ClientSettings
from kubeaccess._cogs.structs.credentials import ConnectionInfo
from kubeaccess._cogs.structs.references import Resource


@pytest.fixture()
def namespaced_resource():
    """ The resource used in the tests. Usually mocked, so it is used only as a descriptor. """
    return Resource('kubeaccess.dev', 'v1', 'kubeexamples', kind='KubeExample', namespaced=True)


@pytest.fixture()
def cluster_resource():
    """ The resource used in the tests. Usually mocked, so it is used only as a descriptor. """
    return Resource('kubeaccess.dev', 'v1', 'kubeclusters', kind='KubeCluster', namespaced=False)


@pytest.fixture(params=[True, False], ids=['namespaced', 'cluster'])
def resource(request, namespaced_resource, cluster_resource):
    """ The resource used in the tests. Usually mocked, so it is used only as a descriptor. """
    return namespaced_resource if request.param else cluster_resource


@pytest.fixture()
def namespace(resource):
    return 'ns' if resource.namespaced else None


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return logging.getLogger('kubeaccess.tests')


#
# Mocks for Kubernetes API (all of it). Reasons:
# 1. We do not test the aiohttp client, we test the layers on top of it,
#    so the server side is mocked and assumed to be functional.
# 2. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
#

@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
async def context(hostname, aresponses):
    info = ConnectionInfo(server=f'https://{hostname}', token='fake-token', default_namespace='default')
    async with APIContext(info) as context:
        yield context


@pytest.fixture()
def resp_mocker(mocker, aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered; and to assert on the requests.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
            request = callback.call_args[0][0]
            assert await request.json() == {...}
    """
    def resp_maker(*args, **kwargs):
        actual_response = mocker.MagicMock(*args, **kwargs)
        async def resp_mock_effect(request):
            nonlocal actual_response

            # The request's content can be read inside of the handler only.
            # Once read, it is cached in the request, so it can be asserted later.
            await request.read()

            # Get a response/error as it was intended (via return_value/side_effect).
            response = actual_response()
            return response

        return mocker.AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


#
# Helpers for the logging checks.
#

@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    def assert_logs_fn(patterns, prohibited=[], strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
