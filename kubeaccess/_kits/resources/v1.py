"""
The grouping of the typed facades, for the convenience of discovery::

    async with kubeaccess.Cluster(kubeaccess.ConnectionInfo(server=...)) as cluster:
        pod = await cluster.v1.pods.read_namespaced('default', 'nginx')

The facades share the same API context and settings. For the resources
without a facade (e.g. the custom resources), use `Cluster.resource`.
"""
from types import TracebackType
from typing import Optional, Type

from kubeaccess._cogs.clients import auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.structs import credentials, envelopes, references
from kubeaccess._core.access import generic
from kubeaccess._kits.resources import deployments, namespaces, pods, services


class V1:
    pods: pods.Pods
    deployments: deployments.Deployments
    services: services.Services
    namespaces: namespaces.Namespaces

    def __init__(
            self,
            context: auth.APIContext,
            *,
            settings: Optional[configuration.ClientSettings] = None,
    ) -> None:
        super().__init__()
        self.pods = pods.Pods(context, settings=settings)
        self.deployments = deployments.Deployments(context, settings=settings)
        self.services = services.Services(context, settings=settings)
        self.namespaces = namespaces.Namespaces(context, settings=settings)


class Cluster:
    """
    An entry point to a single cluster: the API context, the settings, the facades.

    The cluster owns the API context only if it was created from the connection
    info; a context passed explicitly is not closed together with the cluster.
    """

    def __init__(
            self,
            info: Optional[credentials.ConnectionInfo] = None,
            *,
            context: Optional[auth.APIContext] = None,
            settings: Optional[configuration.ClientSettings] = None,
    ) -> None:
        super().__init__()
        if (info is None) == (context is None):
            raise TypeError("Either the connection info or the API context must be passed.")
        self._owned = context is None
        self.context = context if context is not None else auth.APIContext(info)  # type: ignore[arg-type]
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.v1 = V1(self.context, settings=self.settings)

    async def __aenter__(self) -> "Cluster":
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owned:
            await self.context.close()

    def resource(
            self,
            resource: references.Resource,
            cls: Type[envelopes.ObjectT],
    ) -> generic.ResourceClient[envelopes.ObjectT]:
        return generic.ResourceClient(self.context, resource, cls, settings=self.settings)
