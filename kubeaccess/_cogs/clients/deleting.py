from typing import Any, Mapping, Optional

from kubeaccess._cogs.clients import api, auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import references


async def delete_obj(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        params: Optional[Mapping[str, str]] = None,
        logger: typedefs.Logger,
) -> Mapping[str, Any]:
    """
    Delete a resource of specific kind.

    Returns the raw response as is: usually a ``Status`` document,
    but some resources respond with the object being deleted
    (e.g. when it has finalizers and is only marked for deletion).
    """
    rsp: Mapping[str, Any] = await api.delete(
        url=resource.get_url(namespace=namespace, name=name, params=params),
        context=context,
        settings=settings,
        logger=logger,
    )
    return rsp
