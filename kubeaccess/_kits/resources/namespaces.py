from typing import Optional

from kubeaccess._cogs.clients import auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import envelopes, references
from kubeaccess._core.access import generic

NAMESPACES = references.Resource('', 'v1', 'namespaces', kind='Namespace', namespaced=False)


class NamespaceStatus(envelopes.Struct):
    phase: Optional[str] = None


class Namespace(envelopes.Object):
    status: Optional[NamespaceStatus] = None  # type: ignore[assignment]


class Namespaces(generic.ResourceClient[Namespace]):
    """
    Namespaces: cluster-scoped, so only the cluster-wide operations make sense.
    """

    def __init__(
            self,
            context: auth.APIContext,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: typedefs.Logger = generic.logger,
    ) -> None:
        super().__init__(context, NAMESPACES, Namespace, settings=settings, logger=logger)
