import copy

from kubeaccess._cogs.clients import api, auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import bodies, references


async def create_obj(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        body: bodies.RawBody,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Create a resource.

    For namespaced calls, the namespace is also injected into the body's
    metadata unless it is already there. The caller's body is not modified.
    """
    body = copy.deepcopy(body)
    if namespace is not None:
        body.setdefault('metadata', {}).setdefault('namespace', namespace)

    created_body: bodies.RawBody = await api.post(
        url=resource.get_url(namespace=namespace),
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return created_body
