import datetime

import aiohttp.web
import pytest

from kubeaccess._cogs.clients.errors import APINotFoundError
from kubeaccess._kits.resources.deployments import RESTARTED_AT_ANNOTATION, Deployment, \
                                                   Deployments, is_deployment_ready

DEPLOYMENT_URL = '/apis/apps/v1/namespaces/ns/deployments/web'


def make_deployment(replicas=None, ready=None, updated=None, status=True):
    raw = {'metadata': {'name': 'web', 'namespace': 'ns'}, 'spec': {}}
    if replicas is not None:
        raw['spec']['replicas'] = replicas
    if status:
        raw['status'] = {}
        if ready is not None:
            raw['status']['readyReplicas'] = ready
        if updated is not None:
            raw['status']['updatedReplicas'] = updated
    return raw


@pytest.fixture()
def deployments(context, settings):
    return Deployments(context, settings=settings)


@pytest.mark.parametrize('raw, expected', [
    pytest.param(make_deployment(3, 3, 3), True, id='all-ready'),
    pytest.param(make_deployment(3, 2, 3), False, id='partially-ready'),
    pytest.param(make_deployment(3, 3, 2), False, id='rolling-out'),
    pytest.param(make_deployment(0), True, id='scaled-to-zero'),
    pytest.param(make_deployment(2), False, id='no-counters'),
    pytest.param(make_deployment(3, 3, 3, status=False), False, id='no-status'),
])
def test_deployment_readiness(raw, expected):
    assert is_deployment_ready(Deployment.from_raw(raw)) is expected


async def test_scaling(resp_mocker, aresponses, hostname, deployments):
    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(make_deployment(5)))
    aresponses.add(hostname, DEPLOYMENT_URL, 'patch', patch_mock)

    deployment = await deployments.scale('ns', 'web', 5)

    assert deployment.spec.replicas == 5
    request = patch_mock.call_args[0][0]
    assert request.headers['Content-Type'] == 'application/merge-patch+json'
    assert await request.json() == {'spec': {'replicas': 5}}


async def test_restarting(resp_mocker, aresponses, hostname, deployments):
    patch_mock = resp_mocker(return_value=aiohttp.web.json_response(make_deployment(1)))
    aresponses.add(hostname, DEPLOYMENT_URL, 'patch', patch_mock)

    before = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    await deployments.restart('ns', 'web')
    after = datetime.datetime.now(datetime.timezone.utc)

    request = patch_mock.call_args[0][0]
    assert request.headers['Content-Type'] == 'application/strategic-merge-patch+json'
    data = await request.json()
    timestamp = data['spec']['template']['metadata']['annotations'][RESTARTED_AT_ANNOTATION]
    assert timestamp.endswith('Z')
    assert before <= datetime.datetime.fromisoformat(timestamp.replace('Z', '+00:00')) <= after


@pytest.mark.parametrize('raw, expected', [
    (make_deployment(3), 3),
    (make_deployment(), 0),
])
async def test_replicas(aresponses, hostname, deployments, raw, expected):
    aresponses.add(hostname, DEPLOYMENT_URL, 'get', aiohttp.web.json_response(raw))
    assert await deployments.replicas('ns', 'web') == expected


async def test_is_ready(aresponses, hostname, deployments):
    aresponses.add(hostname, DEPLOYMENT_URL, 'get', aiohttp.web.json_response(make_deployment(2, 2, 2)))
    assert await deployments.is_ready('ns', 'web') is True


async def test_is_ready_when_absent(aresponses, hostname, deployments):
    aresponses.add(hostname, DEPLOYMENT_URL, 'get', aiohttp.web.json_response(
        {'kind': 'Status', 'code': 404}, status=404))
    assert await deployments.is_ready('ns', 'web') is False


async def test_replicas_when_absent(aresponses, hostname, deployments):
    aresponses.add(hostname, DEPLOYMENT_URL, 'get', aiohttp.web.json_response(
        {'kind': 'Status', 'code': 404}, status=404))
    with pytest.raises(APINotFoundError):
        await deployments.replicas('ns', 'web')


async def test_waiting_until_ready(resp_mocker, aresponses, hostname, deployments, looptime):
    get_mock = resp_mocker(side_effect=[
        aiohttp.web.json_response(make_deployment(2, 1, 2)),
        aiohttp.web.json_response(make_deployment(2, 2, 2)),
    ])
    aresponses.add(hostname, DEPLOYMENT_URL, 'get', get_mock, repeat=2)

    deployment = await deployments.wait_until_ready('ns', 'web', timeout=5, interval=1.5)

    assert deployment.status.ready_replicas == 2
    assert get_mock.call_count == 2
    assert looptime == 1.5
