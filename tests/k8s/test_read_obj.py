import aiohttp.web
import pytest

from kubeaccess._cogs.clients.errors import APIForbiddenError, APINotFoundError, DecodeError
from kubeaccess._cogs.structs.envelopes import Object

NAMESPACED_URL = '/apis/kubeaccess.dev/v1/namespaces/ns/kubeexamples'


async def test_when_present_namespaced(resp_mocker, aresponses, hostname, client):
    get_mock = resp_mocker(return_value=aiohttp.web.json_response({
        'kind': 'KubeExample',
        'metadata': {'name': 'name1', 'namespace': 'ns', 'resourceVersion': '3'},
        'spec': {'x': 'y'},
    }))
    aresponses.add(hostname, f'{NAMESPACED_URL}/name1', 'get', get_mock)

    obj = await client.read_namespaced('ns', 'name1')

    assert get_mock.called
    assert get_mock.call_count == 1
    assert isinstance(obj, Object)
    assert obj.name == 'name1'
    assert obj.namespace == 'ns'
    assert obj.resource_version == '3'
    assert obj.spec == {'x': 'y'}


async def test_when_present_clustered(aresponses, hostname, cluster_client):
    aresponses.add(hostname, '/apis/kubeaccess.dev/v1/kubeclusters/name1', 'get',
                   aiohttp.web.json_response({'metadata': {'name': 'name1'}}))
    obj = await cluster_client.read('name1')
    assert obj.name == 'name1'


@pytest.mark.parametrize('status, exctype', [
    (403, APIForbiddenError),
    (404, APINotFoundError),
])
async def test_when_absent(aresponses, hostname, client, status, exctype):
    aresponses.add(hostname, f'{NAMESPACED_URL}/name1', 'get', aiohttp.web.json_response({
        'kind': 'Status', 'status': 'Failure', 'code': status, 'message': 'boo!',
    }, status=status))
    with pytest.raises(exctype) as err:
        await client.read_namespaced('ns', 'name1')
    assert err.value.status == status
    assert err.value.message == 'boo!'


@pytest.mark.parametrize('namespace, name', [
    ('', 'name1'),
    ('ns', ''),
])
async def test_empty_names_are_not_requested(
        resp_mocker, aresponses, hostname, client, namespace, name):

    get_mock = resp_mocker(return_value=aiohttp.web.json_response({}))
    aresponses.add(hostname, aresponses.ANY, 'get', get_mock)
    with pytest.raises(APINotFoundError):
        await client.read_namespaced(namespace, name)
    assert not get_mock.called


async def test_malformed_object(aresponses, hostname, client):
    aresponses.add(hostname, f'{NAMESPACED_URL}/name1', 'get',
                   aiohttp.web.json_response({'metadata': {'namespace': 'ns'}}))
    with pytest.raises(DecodeError) as err:
        await client.read_namespaced('ns', 'name1')
    assert err.value.path == 'metadata'
    assert 'metadata.name is missing' in str(err.value)


async def test_non_json_response(aresponses, hostname, client):
    aresponses.add(hostname, f'{NAMESPACED_URL}/name1', 'get',
                   aresponses.Response(text='<html>oops</html>'))
    with pytest.raises(DecodeError):
        await client.read_namespaced('ns', 'name1')
