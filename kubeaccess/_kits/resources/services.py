from typing import Mapping, Optional, Sequence, Union

import pydantic

from kubeaccess._cogs.clients import auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import envelopes, references
from kubeaccess._core.access import generic

SERVICES = references.Resource('', 'v1', 'services', kind='Service', namespaced=True)


class ServicePort(envelopes.Struct):
    port: Optional[int] = None
    name: Optional[str] = None
    protocol: Optional[str] = None
    target_port: Optional[Union[int, str]] = None  # a number or a port's name
    node_port: Optional[int] = None


class ServiceSpec(envelopes.Struct):
    type: Optional[str] = None
    ports: Optional[Sequence[ServicePort]] = None
    selector: Optional[Mapping[str, str]] = None
    cluster_ip: Optional[str] = pydantic.Field(None, alias='clusterIP')


class Service(envelopes.Object):
    spec: Optional[ServiceSpec] = None  # type: ignore[assignment]


class Services(generic.ResourceClient[Service]):

    def __init__(
            self,
            context: auth.APIContext,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: typedefs.Logger = generic.logger,
    ) -> None:
        super().__init__(context, SERVICES, Service, settings=settings, logger=logger)
