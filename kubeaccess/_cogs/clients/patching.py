import enum
from typing import Any, Dict, Optional

from kubeaccess._cogs.clients import api, auth
from kubeaccess._cogs.configs import configuration
from kubeaccess._cogs.helpers import typedefs
from kubeaccess._cogs.structs import bodies, references


class PatchType(str, enum.Enum):
    """ The patching strategies, as named by their content types. """
    MERGE = 'application/merge-patch+json'
    STRATEGIC = 'application/strategic-merge-patch+json'
    JSON = 'application/json-patch+json'
    APPLY = 'application/apply-patch+yaml'


async def patch_obj(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        patch: Any,
        patch_type: PatchType = PatchType.MERGE,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Patch a resource of specific kind.

    The patch is a mapping for the merge & strategic-merge patches,
    or a list of operations for the JSON-patches (RFC 6902).
    Returns the whole patched body as reported by the server.
    """
    patched_body: bodies.RawBody = await api.patch(
        url=resource.get_url(namespace=namespace, name=name),
        payload=patch,
        content_type=patch_type.value,
        context=context,
        settings=settings,
        logger=logger,
    )
    return patched_body


async def replace_obj(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        body: bodies.RawBody,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Replace a resource entirely with the new body.

    If the body contains ``metadata.resourceVersion``, the server rejects
    the replacement of a modified object with HTTP 409 Conflict.
    """
    replaced_body: bodies.RawBody = await api.put(
        url=resource.get_url(namespace=namespace, name=name),
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return replaced_body


async def apply_obj(
        *,
        context: auth.APIContext,
        settings: configuration.ClientSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        body: bodies.RawBody,
        field_manager: Optional[str] = None,
        force: bool = False,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    """
    Apply a resource server-side: create it or merge the managed fields into it.

    The server tracks the fields' ownership by the field manager's name.
    With ``force``, the conflicting fields of other managers are taken over.
    """
    params: Dict[str, str] = {}
    params['fieldManager'] = field_manager or settings.applying.field_manager
    if force:
        params['force'] = 'true'

    applied_body: bodies.RawBody = await api.patch(
        url=resource.get_url(namespace=namespace, name=name, params=params),
        payload=body,
        content_type=PatchType.APPLY.value,
        context=context,
        settings=settings,
        logger=logger,
    )
    return applied_body
