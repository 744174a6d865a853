"""
The main module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubeaccess._cogs.clients.auth import (
    APIContext,
)
from kubeaccess._cogs.clients.errors import (
    KubeAccessError,
    TransportError,
    DecodeError,
    DeadlineExceededError,
    StreamClosedError,
    APIError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIGoneError,
)
from kubeaccess._cogs.clients.patching import (
    PatchType,
)
from kubeaccess._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    WatchingSettings,
    PagingSettings,
    PollingSettings,
    ApplyingSettings,
)
from kubeaccess._cogs.helpers.typedefs import (
    Logger,
)
from kubeaccess._cogs.helpers.versions import (
    version as __version__,
)
from kubeaccess._cogs.structs.bodies import (
    RawBody,
    RawMeta,
    RawList,
    RawInput,
    Labels,
    Annotations,
)
from kubeaccess._cogs.structs.credentials import (
    LoginError,
    ConnectionInfo,
)
from kubeaccess._cogs.structs.envelopes import (
    Struct,
    Meta,
    OwnerReference,
    Object,
    ObjectList,
    ListMeta,
    Status,
    StatusDetails,
    StatusCause,
    EventType,
    WatchEvent,
)
from kubeaccess._cogs.structs.references import (
    Resource,
    NamespaceName,
)
from kubeaccess._core.access.generic import (
    ResourceClient,
)
from kubeaccess._core.access.paging import (
    Paginator,
)
from kubeaccess._core.access.polling import (
    wait_until,
)
from kubeaccess._core.access.streaming import (
    WatchStream,
    WatchState,
)
from kubeaccess._core.actions.loggers import (
    LogFormat,
    ObjectLogger,
    configure,
)
from kubeaccess._kits.resources.pods import (
    Pods,
    Pod,
    PodSpec,
    PodStatus,
    Container,
    ContainerStatus,
    ContainerState,
    is_pod_ready,
    is_pod_running,
)
from kubeaccess._kits.resources.deployments import (
    Deployments,
    Deployment,
    DeploymentSpec,
    DeploymentStatus,
    is_deployment_ready,
)
from kubeaccess._kits.resources.namespaces import (
    Namespaces,
    Namespace,
)
from kubeaccess._kits.resources.services import (
    Services,
    Service,
    ServiceSpec,
    ServicePort,
)
from kubeaccess._kits.resources.v1 import (
    V1,
    Cluster,
)

__all__ = [
    'APIContext',
    'KubeAccessError', 'TransportError', 'DecodeError',
    'DeadlineExceededError', 'StreamClosedError',
    'APIError', 'APIUnauthorizedError', 'APIForbiddenError',
    'APINotFoundError', 'APIConflictError', 'APIGoneError',
    'PatchType',
    'ClientSettings', 'NetworkingSettings', 'WatchingSettings',
    'PagingSettings', 'PollingSettings', 'ApplyingSettings',
    'Logger',
    'RawBody', 'RawMeta', 'RawList', 'RawInput', 'Labels', 'Annotations',
    'LoginError', 'ConnectionInfo',
    'Struct', 'Meta', 'OwnerReference', 'Object', 'ObjectList', 'ListMeta',
    'Status', 'StatusDetails', 'StatusCause', 'EventType', 'WatchEvent',
    'Resource', 'NamespaceName',
    'ResourceClient', 'Paginator', 'wait_until', 'WatchStream', 'WatchState',
    'LogFormat', 'ObjectLogger', 'configure',
    'Pods', 'Pod', 'PodSpec', 'PodStatus', 'Container', 'ContainerStatus', 'ContainerState',
    'is_pod_ready', 'is_pod_running',
    'Deployments', 'Deployment', 'DeploymentSpec', 'DeploymentStatus', 'is_deployment_ready',
    'Namespaces', 'Namespace',
    'Services', 'Service', 'ServiceSpec', 'ServicePort',
    'V1', 'Cluster',
]
