import pytest

from kubeaccess._cogs.structs.envelopes import Object
from kubeaccess._core.access.generic import ResourceClient


@pytest.fixture()
def client(context, namespaced_resource, settings, logger):
    return ResourceClient(context, namespaced_resource, Object, settings=settings, logger=logger)


@pytest.fixture()
def cluster_client(context, cluster_resource, settings, logger):
    return ResourceClient(context, cluster_resource, Object, settings=settings, logger=logger)
