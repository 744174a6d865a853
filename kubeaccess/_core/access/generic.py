"""
The generic typed client for one resource kind: the base of all the facades.

The client knows the resource's API endpoint (see `references.Resource`)
and the typed class of its objects (see `envelopes.Object`). All the objects
coming from the server are decoded into that class; all the objects going
to the server are encoded from it (or passed as raw mappings as they are).

Every method is a single request with no caching and no retries:
the result is either a decoded value or an error of `errors.KubeAccessError`.
"""
import copy
import functools
import logging
from typing import Any, Dict, Generic, Mapping, Optional, Type, Union

from kubeaccess._cogs.clients import auth, creating, deleting, errors, fetching, patching, watching
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import bodies, envelopes, references
from kubeaccess._core.access import paging, streaming

logger = logging.getLogger(__name__)

# What can be sent to the server: a typed object, or a raw body as is.
ObjectOrBody = Union[envelopes.Object, Mapping[str, Any]]


class ResourceClient(Generic[envelopes.ObjectT]):
    """
    List, read, create, replace, patch, apply, delete, paginate, watch the objects.

    Every operation exists in two flavours: the cluster-wide one (for the
    cluster-scoped resources or for listing across all namespaces),
    and the namespaced one (``*_namespaced``) with the namespace as the first
    argument. An empty namespace or name is never sent to the server:
    it is reported as `errors.APINotFoundError` right away.
    """

    def __init__(
            self,
            context: auth.APIContext,
            resource: references.Resource,
            cls: Type[envelopes.ObjectT],
            *,
            settings: Optional[configuration.ClientSettings] = None,
            logger: typedefs.Logger = logger,
    ) -> None:
        super().__init__()
        self.context = context
        self.resource = resource
        self.cls = cls
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.logger = logger

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} for {self.resource!r}>'

    async def list(
            self,
            *,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
            limit: Optional[int] = None,
            continue_token: Optional[str] = None,
            resource_version: Optional[str] = None,
    ) -> envelopes.ObjectList[envelopes.ObjectT]:
        return await self._list(
            namespace=None,
            label_selector=label_selector,
            field_selector=field_selector,
            limit=limit,
            continue_token=continue_token,
            resource_version=resource_version,
        )

    async def list_namespaced(
            self,
            namespace: str,
            *,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
            limit: Optional[int] = None,
            continue_token: Optional[str] = None,
            resource_version: Optional[str] = None,
    ) -> envelopes.ObjectList[envelopes.ObjectT]:
        return await self._list(
            namespace=self._check_namespace(namespace),
            label_selector=label_selector,
            field_selector=field_selector,
            limit=limit,
            continue_token=continue_token,
            resource_version=resource_version,
        )

    async def read(self, name: str) -> envelopes.ObjectT:
        return await self._read(namespace=None, name=name)

    async def read_namespaced(self, namespace: str, name: str) -> envelopes.ObjectT:
        return await self._read(namespace=self._check_namespace(namespace), name=name)

    async def create(self, obj: ObjectOrBody) -> envelopes.ObjectT:
        return await self._create(namespace=None, obj=obj)

    async def create_namespaced(self, namespace: str, obj: ObjectOrBody) -> envelopes.ObjectT:
        return await self._create(namespace=self._check_namespace(namespace), obj=obj)

    async def replace(self, name: str, obj: ObjectOrBody) -> envelopes.ObjectT:
        return await self._replace(namespace=None, name=name, obj=obj)

    async def replace_namespaced(
            self,
            namespace: str,
            name: str,
            obj: ObjectOrBody,
    ) -> envelopes.ObjectT:
        return await self._replace(namespace=self._check_namespace(namespace), name=name, obj=obj)

    async def patch(
            self,
            name: str,
            patch: Any,
            *,
            patch_type: patching.PatchType = patching.PatchType.MERGE,
    ) -> envelopes.ObjectT:
        return await self._patch(namespace=None, name=name, patch=patch, patch_type=patch_type)

    async def patch_namespaced(
            self,
            namespace: str,
            name: str,
            patch: Any,
            *,
            patch_type: patching.PatchType = patching.PatchType.MERGE,
    ) -> envelopes.ObjectT:
        return await self._patch(namespace=self._check_namespace(namespace),
                                 name=name, patch=patch, patch_type=patch_type)

    async def apply(
            self,
            name: str,
            obj: ObjectOrBody,
            *,
            field_manager: Optional[str] = None,
            force: bool = False,
    ) -> envelopes.ObjectT:
        return await self._apply(namespace=None, name=name, obj=obj,
                                 field_manager=field_manager, force=force)

    async def apply_namespaced(
            self,
            namespace: str,
            name: str,
            obj: ObjectOrBody,
            *,
            field_manager: Optional[str] = None,
            force: bool = False,
    ) -> envelopes.ObjectT:
        return await self._apply(namespace=self._check_namespace(namespace), name=name, obj=obj,
                                 field_manager=field_manager, force=force)

    async def delete(
            self,
            name: str,
            *,
            propagation_policy: Optional[str] = None,
            grace_period_seconds: Optional[int] = None,
    ) -> envelopes.Status:
        return await self._delete(namespace=None, name=name,
                                  propagation_policy=propagation_policy,
                                  grace_period_seconds=grace_period_seconds)

    async def delete_namespaced(
            self,
            namespace: str,
            name: str,
            *,
            propagation_policy: Optional[str] = None,
            grace_period_seconds: Optional[int] = None,
    ) -> envelopes.Status:
        return await self._delete(namespace=self._check_namespace(namespace), name=name,
                                  propagation_policy=propagation_policy,
                                  grace_period_seconds=grace_period_seconds)

    def paginate(
            self,
            *,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
            page_size: Optional[int] = None,
    ) -> paging.Paginator[envelopes.ObjectT]:
        return paging.Paginator(
            self.list,
            label_selector=label_selector,
            field_selector=field_selector,
            page_size=page_size if page_size is not None else self.settings.paging.page_size,
        )

    def paginate_namespaced(
            self,
            namespace: str,
            *,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
            page_size: Optional[int] = None,
    ) -> paging.Paginator[envelopes.ObjectT]:
        # Checked at the iteration, so that nothing happens on creation of the paginator.
        return paging.Paginator(
            functools.partial(self.list_namespaced, namespace),
            label_selector=label_selector,
            field_selector=field_selector,
            page_size=page_size if page_size is not None else self.settings.paging.page_size,
        )

    def watch(
            self,
            *,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
            resource_version: Optional[str] = None,
            timeout: Optional[float] = None,
    ) -> streaming.WatchStream[envelopes.ObjectT]:
        return self._watch(
            namespace=None,
            label_selector=label_selector,
            field_selector=field_selector,
            resource_version=resource_version,
            timeout=timeout,
        )

    def watch_namespaced(
            self,
            namespace: str,
            *,
            label_selector: Optional[str] = None,
            field_selector: Optional[str] = None,
            resource_version: Optional[str] = None,
            timeout: Optional[float] = None,
    ) -> streaming.WatchStream[envelopes.ObjectT]:
        return self._watch(
            namespace=self._check_namespace(namespace),
            label_selector=label_selector,
            field_selector=field_selector,
            resource_version=resource_version,
            timeout=timeout,
        )

    #
    # The actual implementations for both flavours.
    #

    async def _list(
            self,
            *,
            namespace: references.Namespace,
            label_selector: Optional[str],
            field_selector: Optional[str],
            limit: Optional[int],
            continue_token: Optional[str],
            resource_version: Optional[str],
    ) -> envelopes.ObjectList[envelopes.ObjectT]:
        params: Dict[str, str] = {}
        if label_selector is not None:
            params['labelSelector'] = label_selector
        if field_selector is not None:
            params['fieldSelector'] = field_selector
        if limit is not None:
            params['limit'] = str(limit)
        if continue_token:
            params['continue'] = continue_token
        if resource_version is not None:
            params['resourceVersion'] = resource_version

        raw = await fetching.list_objs(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            params=params,
            logger=self.logger,
        )
        return envelopes.ObjectList.from_raw(raw, self.cls)

    async def _read(
            self,
            *,
            namespace: references.Namespace,
            name: str,
    ) -> envelopes.ObjectT:
        raw = await fetching.read_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=self._check_name(name),
            logger=self.logger,
        )
        return self.cls.from_raw(raw)

    async def _create(
            self,
            *,
            namespace: references.Namespace,
            obj: ObjectOrBody,
    ) -> envelopes.ObjectT:
        raw = await creating.create_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            body=self._encode(obj),
            logger=self.logger,
        )
        return self.cls.from_raw(raw)

    async def _replace(
            self,
            *,
            namespace: references.Namespace,
            name: str,
            obj: ObjectOrBody,
    ) -> envelopes.ObjectT:
        raw = await patching.replace_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=self._check_name(name),
            body=self._encode(obj),
            logger=self.logger,
        )
        return self.cls.from_raw(raw)

    async def _patch(
            self,
            *,
            namespace: references.Namespace,
            name: str,
            patch: Any,
            patch_type: patching.PatchType,
    ) -> envelopes.ObjectT:
        if patch_type == patching.PatchType.APPLY:
            raise ValueError("Server-side apply is done via apply(), not via patch().")
        raw = await patching.patch_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=self._check_name(name),
            patch=patch,
            patch_type=patch_type,
            logger=self.logger,
        )
        return self.cls.from_raw(raw)

    async def _apply(
            self,
            *,
            namespace: references.Namespace,
            name: str,
            obj: ObjectOrBody,
            field_manager: Optional[str],
            force: bool,
    ) -> envelopes.ObjectT:
        body = self._encode(obj)

        # Server-side apply requires the type information in the body itself.
        body.setdefault('apiVersion', self.resource.api_version)
        if self.resource.kind is not None:
            body.setdefault('kind', self.resource.kind)
        body.setdefault('metadata', {}).setdefault('name', name)

        raw = await patching.apply_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=self._check_name(name),
            body=body,
            field_manager=field_manager,
            force=force,
            logger=self.logger,
        )
        return self.cls.from_raw(raw)

    async def _delete(
            self,
            *,
            namespace: references.Namespace,
            name: str,
            propagation_policy: Optional[str],
            grace_period_seconds: Optional[int],
    ) -> envelopes.Status:
        params: Dict[str, str] = {}
        if propagation_policy is not None:
            params['propagationPolicy'] = propagation_policy
        if grace_period_seconds is not None:
            params['gracePeriodSeconds'] = str(grace_period_seconds)

        raw = await deleting.delete_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=self._check_name(name),
            params=params,
            logger=self.logger,
        )
        return summarize_deletion(raw)

    def _watch(
            self,
            *,
            namespace: references.Namespace,
            label_selector: Optional[str],
            field_selector: Optional[str],
            resource_version: Optional[str],
            timeout: Optional[float],
    ) -> streaming.WatchStream[envelopes.ObjectT]:
        watcher = functools.partial(
            watching.watch_objs,
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            label_selector=label_selector,
            field_selector=field_selector,
        )
        return streaming.WatchStream(
            watcher,
            self.cls,
            resource_version=resource_version,
            timeout=timeout,
            logger=self.logger,
        )

    def _check_namespace(self, namespace: str) -> references.NamespaceName:
        if not namespace:
            raise errors.not_found(f"An empty namespace cannot be addressed for {self.resource!r}.")
        return references.NamespaceName(namespace)

    def _check_name(self, name: str) -> str:
        if not name:
            raise errors.not_found(f"An empty name cannot be addressed for {self.resource!r}.")
        return name

    @staticmethod
    def _encode(obj: ObjectOrBody) -> bodies.RawBody:
        if isinstance(obj, envelopes.Object):
            return obj.to_raw()  # type: ignore[return-value]
        else:
            return copy.deepcopy(dict(obj))  # type: ignore[return-value]


def summarize_deletion(raw: Mapping[str, Any]) -> envelopes.Status:
    """
    Convert the deletion's response to a status, even if it is not a status.

    Some resources respond to the deletion with the object itself
    (e.g. if the object is only marked for deletion due to finalizers),
    though most of them respond with a ``Status`` document.
    """
    if raw.get('kind') == 'Status':
        return envelopes.Status.from_raw(raw)

    metadata = raw.get('metadata') if isinstance(raw.get('metadata'), Mapping) else {}
    return envelopes.Status.from_raw({
        'kind': 'Status',
        'apiVersion': 'v1',
        'status': 'Success',
        'details': {
            'name': metadata.get('name'),
            'kind': raw.get('kind'),
            'uid': metadata.get('uid'),
        },
    })
