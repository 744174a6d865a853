from typing import Mapping, Optional

from kubeaccess._cogs.clients import api, auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import bodies, references


async def list_objs(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        params: Optional[Mapping[str, str]] = None,
        logger: typedefs.Logger,
) -> bodies.RawList:
    """
    List the objects of specific resource type, one page at a time.

    The cluster-wide call is used if the namespace is ``None``;
    otherwise, the listing is restricted to that namespace.

    The query params (selectors, limits, continuation tokens) are passed
    to the server as they are. The pagination is not done here:
    a single page is fetched as the server returns it.
    """
    rsp: bodies.RawList = await api.get(
        url=resource.get_url(namespace=namespace, params=params),
        context=context,
        settings=settings,
        logger=logger,
    )
    return rsp


async def read_obj(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    obj: bodies.RawBody = await api.get(
        url=resource.get_url(namespace=namespace, name=name),
        context=context,
        settings=settings,
        logger=logger,
    )
    return obj
