import datetime
import functools
from typing import Mapping, Optional

from kubeaccess._cogs.clients import auth, errors, patching
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import envelopes, references
from kubeaccess._core.access import generic, polling
from kubeaccess._core.actions import loggers
from kubeaccess._kits.resources import pods

DEPLOYMENTS = references.Resource('apps', 'v1', 'deployments', kind='Deployment', namespaced=True)

# The same annotation as used by `kubectl rollout restart`.
RESTARTED_AT_ANNOTATION = 'kubectl.kubernetes.io/restartedAt'

# Deployments roll out slower than pods start, so there is no need to poll them often.
DEFAULT_POLLING_INTERVAL = 2.0


class LabelSelector(envelopes.Struct):
    match_labels: Optional[Mapping[str, str]] = None


class PodTemplateSpec(envelopes.Struct):
    metadata: Optional[envelopes.Meta] = None
    spec: Optional[pods.PodSpec] = None


class DeploymentSpec(envelopes.Struct):
    replicas: Optional[int] = None
    selector: Optional[LabelSelector] = None
    template: Optional[PodTemplateSpec] = None


class DeploymentStatus(envelopes.Struct):
    replicas: Optional[int] = None
    ready_replicas: Optional[int] = None
    available_replicas: Optional[int] = None
    updated_replicas: Optional[int] = None


class Deployment(envelopes.Object):
    spec: Optional[DeploymentSpec] = None  # type: ignore[assignment]
    status: Optional[DeploymentStatus] = None  # type: ignore[assignment]


def is_deployment_ready(deployment: Deployment) -> bool:
    """
    Check if all the desired replicas are updated and ready.

    The absent counters are treated as zeroes. A deployment without
    the spec or the status (not yet processed by the controller) is not ready.
    """
    if deployment.spec is None or deployment.status is None:
        return False
    desired = deployment.spec.replicas or 0
    ready = deployment.status.ready_replicas or 0
    updated = deployment.status.updated_replicas or 0
    return ready == desired and updated == desired


class Deployments(generic.ResourceClient[Deployment]):
    """
    Deployments: the generic operations plus scaling, restarts, and readiness.
    """

    def __init__(
            self,
            context: auth.APIContext,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: typedefs.Logger = generic.logger,
    ) -> None:
        super().__init__(context, DEPLOYMENTS, Deployment, settings=settings, logger=logger)

    async def scale(self, namespace: str, name: str, replicas: int) -> Deployment:
        patch = {'spec': {'replicas': replicas}}
        return await self.patch_namespaced(namespace, name, patch,
                                           patch_type=patching.PatchType.MERGE)

    async def restart(self, namespace: str, name: str) -> Deployment:
        """
        Restart all the pods by changing the pod template, as ``kubectl`` does.
        """
        now = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
        timestamp = now.isoformat().replace('+00:00', 'Z')
        patch = {'spec': {'template': {'metadata': {'annotations': {
            RESTARTED_AT_ANNOTATION: timestamp,
        }}}}}
        return await self.patch_namespaced(namespace, name, patch,
                                           patch_type=patching.PatchType.STRATEGIC)

    async def replicas(self, namespace: str, name: str) -> int:
        deployment = await self.read_namespaced(namespace, name)
        return (deployment.spec.replicas if deployment.spec is not None else None) or 0

    async def is_ready(self, namespace: str, name: str) -> bool:
        try:
            deployment = await self.read_namespaced(namespace, name)
        except errors.APINotFoundError:
            return False
        return is_deployment_ready(deployment)

    async def wait_until_ready(
            self,
            namespace: str,
            name: str,
            *,
            timeout: Optional[float] = None,
            interval: float = DEFAULT_POLLING_INTERVAL,
    ) -> Deployment:
        return await polling.wait_until(
            functools.partial(self.read_namespaced, namespace, name),
            is_deployment_ready,
            timeout=timeout if timeout is not None else self.settings.polling.timeout,
            interval=interval,
            logger=loggers.ObjectLogger(kind=DEPLOYMENTS.kind, namespace=namespace, name=name),
            what="the deployment's readiness",
        )
