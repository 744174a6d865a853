import contextlib
import datetime
import functools
from typing import AsyncIterator, Dict, Optional, Sequence

import aiohttp
import pydantic

from kubeaccess._cogs.clients import api, auth, errors
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import envelopes, references
from kubeaccess._core.access import generic, polling
from kubeaccess._core.actions import loggers

PODS = references.Resource('', 'v1', 'pods', kind='Pod', namespaced=True)


class Container(envelopes.Struct):
    name: Optional[str] = None
    image: Optional[str] = None
    command: Optional[Sequence[str]] = None
    args: Optional[Sequence[str]] = None


class PodSpec(envelopes.Struct):
    containers: Optional[Sequence[Container]] = None
    node_name: Optional[str] = None
    restart_policy: Optional[str] = None
    service_account_name: Optional[str] = None


class ContainerStateRunning(envelopes.Struct):
    started_at: Optional[datetime.datetime] = None


class ContainerStateWaiting(envelopes.Struct):
    reason: Optional[str] = None
    message: Optional[str] = None


class ContainerStateTerminated(envelopes.Struct):
    exit_code: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class ContainerState(envelopes.Struct):
    running: Optional[ContainerStateRunning] = None
    waiting: Optional[ContainerStateWaiting] = None
    terminated: Optional[ContainerStateTerminated] = None


class ContainerStatus(envelopes.Struct):
    name: Optional[str] = None
    ready: Optional[bool] = None
    restart_count: Optional[int] = None
    state: Optional[ContainerState] = None


class PodStatus(envelopes.Struct):
    phase: Optional[str] = None
    pod_ip: Optional[str] = pydantic.Field(None, alias='podIP')
    container_statuses: Optional[Sequence[ContainerStatus]] = None


class Pod(envelopes.Object):
    spec: Optional[PodSpec] = None  # type: ignore[assignment]
    status: Optional[PodStatus] = None  # type: ignore[assignment]


def is_pod_ready(pod: Pod) -> bool:
    """
    Check if all containers of the pod are ready.

    A pod with no container statuses reported yet (absent or empty) is not ready.
    So is a container without its readiness reported.
    """
    statuses = pod.status.container_statuses if pod.status is not None else None
    return bool(statuses) and all(status.ready is True for status in statuses or [])


def is_pod_running(pod: Pod) -> bool:
    return pod.status is not None and pod.status.phase == 'Running'


class Pods(generic.ResourceClient[Pod]):
    """
    Pods: the generic operations plus readiness checks and logs.
    """

    def __init__(
            self,
            context: auth.APIContext,
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: typedefs.Logger = generic.logger,
    ) -> None:
        super().__init__(context, PODS, Pod, settings=settings, logger=logger)

    async def is_ready(self, namespace: str, name: str) -> bool:
        try:
            pod = await self.read_namespaced(namespace, name)
        except errors.APINotFoundError:
            return False
        return is_pod_ready(pod)

    async def is_running(self, namespace: str, name: str) -> bool:
        try:
            pod = await self.read_namespaced(namespace, name)
        except errors.APINotFoundError:
            return False
        return is_pod_running(pod)

    async def wait_until_ready(
            self,
            namespace: str,
            name: str,
            *,
            timeout: Optional[float] = None,
            interval: Optional[float] = None,
    ) -> Pod:
        return await polling.wait_until(
            functools.partial(self.read_namespaced, namespace, name),
            is_pod_ready,
            timeout=timeout if timeout is not None else self.settings.polling.timeout,
            interval=interval if interval is not None else self.settings.polling.interval,
            logger=loggers.ObjectLogger(kind=PODS.kind, namespace=namespace, name=name),
            what="the pod's readiness",
        )

    async def wait_until_running(
            self,
            namespace: str,
            name: str,
            *,
            timeout: Optional[float] = None,
            interval: Optional[float] = None,
    ) -> Pod:
        return await polling.wait_until(
            functools.partial(self.read_namespaced, namespace, name),
            is_pod_running,
            timeout=timeout if timeout is not None else self.settings.polling.timeout,
            interval=interval if interval is not None else self.settings.polling.interval,
            logger=loggers.ObjectLogger(kind=PODS.kind, namespace=namespace, name=name),
            what="the pod's running phase",
        )

    async def logs(
            self,
            namespace: str,
            name: str,
            *,
            container: Optional[str] = None,
            tail_lines: Optional[int] = None,
            timestamps: bool = False,
            since_seconds: Optional[int] = None,
    ) -> str:
        """
        Fetch the pod's logs as a plain text (all at once, without following).
        """
        url = self._logs_url(namespace, name, container=container, tail_lines=tail_lines,
                             timestamps=timestamps, since_seconds=since_seconds)
        return await api.get_text(
            url=url,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )

    async def stream_logs(
            self,
            namespace: str,
            name: str,
            *,
            container: Optional[str] = None,
            tail_lines: Optional[int] = None,
            timestamps: bool = False,
            since_seconds: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """
        Follow the pod's logs line by line until the container or the connection ends.
        """
        url = self._logs_url(namespace, name, container=container, tail_lines=tail_lines,
                             timestamps=timestamps, since_seconds=since_seconds, follow=True)
        async with contextlib.aclosing(api.stream_lines(
            url=url,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
            timeout=aiohttp.ClientTimeout(
                total=None,
                sock_connect=self.settings.networking.connect_timeout,
            ),
        )) as lines:
            async for line in lines:
                yield line.decode('utf-8', errors='replace').rstrip('\r')

    def _logs_url(
            self,
            namespace: str,
            name: str,
            *,
            container: Optional[str],
            tail_lines: Optional[int],
            timestamps: bool,
            since_seconds: Optional[int],
            follow: bool = False,
    ) -> str:
        params: Dict[str, str] = {}
        if container is not None:
            params['container'] = container
        if follow:
            params['follow'] = 'true'
        if tail_lines is not None:
            params['tailLines'] = str(tail_lines)
        if timestamps:
            params['timestamps'] = 'true'
        if since_seconds is not None:
            params['sinceSeconds'] = str(since_seconds)
        return self.resource.get_url(
            namespace=self._check_namespace(namespace),
            name=self._check_name(name),
            subresource='log',
            params=params,
        )
