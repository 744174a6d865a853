"""
Typed envelopes of K8s API: objects, lists, watch-events, and statuses.

The raw JSON-decoded payloads (see `bodies`) are validated into frozen
pydantic models with typed fields. Every field is described once, with its
type; the wire key is derived from the field name (``resource_version``
becomes ``resourceVersion``) unless the field has an explicit alias
(e.g. ``pydantic.Field(None, alias='clusterIP')``).

The decoding rules are strict but tolerant:

* An absent field (or a ``null`` one) becomes ``None`` -- "not present".
  Present but empty values stay as they are (``""``, ``{}``, ``[]``),
  so that the "omitted" and "present but empty" cases can be distinguished.
* A field without a default is required: its absence is a `DecodeError`.
* A present field of a mismatching type is a `DecodeError`
  with the path to the field (e.g. ``items[3].metadata.name``).

The unknown fields are kept as the models' extras, so that they are
preserved when the struct is encoded back (e.g. for a full replacement).
Typed resource kinds (e.g. pods) are subclasses of `Object` with their own
``spec`` & ``status`` models; the generic objects keep them as raw mappings.
"""
import datetime
import enum
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, Sequence, Type, TypeVar

import pydantic
from pydantic.alias_generators import to_camel

from kubeaccess._cogs.clients import errors

StructT = TypeVar('StructT', bound='Struct')

# A validation context flag: the objects received from the server always have names.
RECEIVED = 'received'


class Struct(pydantic.BaseModel):
    """
    A base for all the typed structures decoded from K8s API.
    """
    model_config = pydantic.ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='allow',
        frozen=True,
    )

    @classmethod
    def from_raw(cls: Type[StructT], raw: Any, *, path: str = '') -> StructT:
        return decode(cls, raw, path=path)

    def to_raw(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class OwnerReference(Struct):
    api_version: Optional[str] = None
    kind: Optional[str] = None
    name: Optional[str] = None
    uid: Optional[str] = None
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


class Meta(Struct):
    name: Optional[str] = None
    generate_name: Optional[str] = None
    namespace: Optional[str] = None
    uid: Optional[str] = None
    resource_version: Optional[str] = None
    labels: Optional[Mapping[str, str]] = None
    annotations: Optional[Mapping[str, str]] = None
    finalizers: Optional[Sequence[str]] = None
    owner_references: Optional[Sequence[OwnerReference]] = None
    creation_timestamp: Optional[datetime.datetime] = None
    deletion_timestamp: Optional[datetime.datetime] = None


class Object(Struct):
    """
    A single K8s object of any kind, with its spec & status as raw mappings.

    The object's identity (its name) is required in the API responses,
    but can be absent in the objects constructed for creation
    (e.g. with ``metadata.generateName`` instead).
    """
    metadata: Meta
    api_version: Optional[str] = None
    kind: Optional[str] = None
    spec: Optional[Mapping[str, Any]] = None
    status: Optional[Mapping[str, Any]] = None

    @pydantic.field_validator('metadata')
    @classmethod
    def _check_identity(cls, metadata: Meta, info: pydantic.ValidationInfo) -> Meta:
        if info.context and info.context.get(RECEIVED) and not metadata.name:
            raise ValueError("metadata.name is missing")
        return metadata

    @property
    def name(self) -> Optional[str]:
        return self.metadata.name

    @property
    def namespace(self) -> Optional[str]:
        return self.metadata.namespace

    @property
    def resource_version(self) -> Optional[str]:
        return self.metadata.resource_version


ObjectT = TypeVar('ObjectT', bound=Object)


class ListMeta(Struct):
    resource_version: Optional[str] = None
    continue_token: Optional[str] = pydantic.Field(None, alias='continue')
    remaining_item_count: Optional[int] = None


class ObjectList(Struct, Generic[ObjectT]):
    """
    One page of a listing: the items and the list's own metadata.

    The ``continue_token`` is present only if more pages remain on the server.
    """
    items: List[ObjectT] = []
    metadata: ListMeta = pydantic.Field(default_factory=ListMeta)
    api_version: Optional[str] = None
    kind: Optional[str] = None

    def __iter__(self) -> Iterator[ObjectT]:  # type: ignore[override]
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def continue_token(self) -> Optional[str]:
        return self.metadata.continue_token or None  # an empty string means no more pages.

    @property
    def resource_version(self) -> Optional[str]:
        return self.metadata.resource_version

    @classmethod
    def from_raw(  # type: ignore[override]
            cls,
            raw: Any,
            item_cls: Type[ObjectT],
    ) -> 'ObjectList[ObjectT]':
        return decode(cls[item_cls], raw)  # type: ignore[index]

    @pydantic.model_validator(mode='before')
    @classmethod
    def _inherit_kinds(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data

        data = dict(data)
        if data.get('metadata') is None:
            data.pop('metadata', None)
        if data.get('items') is None:
            data['items'] = []

        # The server omits the kinds & versions of the items: they are the same as of the list.
        kind, api_version = data.get('kind'), data.get('apiVersion')
        item_kind = kind[:-4] if isinstance(kind, str) and kind.endswith('List') else kind
        defaults = {key: val for key, val in [('kind', item_kind), ('apiVersion', api_version)]
                    if isinstance(val, str) and val}
        if defaults and isinstance(data['items'], list):
            data['items'] = [{**defaults, **item} if isinstance(item, Mapping) else item
                             for item in data['items']]
        return data


class StatusCause(Struct):
    field: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class StatusDetails(Struct):
    name: Optional[str] = None
    group: Optional[str] = None
    kind: Optional[str] = None
    uid: Optional[str] = None
    retry_after_seconds: Optional[int] = None
    causes: Optional[Sequence[StatusCause]] = None


class Status(Struct):
    """
    The outcome-only response: of deletions, of failures, of watch-errors.
    """
    api_version: Optional[str] = None
    kind: Optional[str] = None
    status: Optional[str] = None  # "Success" or "Failure"
    message: Optional[str] = None
    reason: Optional[str] = None
    code: Optional[int] = None
    details: Optional[StatusDetails] = None

    @property
    def success(self) -> bool:
        return self.status == 'Success'


class EventType(str, enum.Enum):
    ADDED = 'ADDED'
    MODIFIED = 'MODIFIED'
    DELETED = 'DELETED'
    ERROR = 'ERROR'
    BOOKMARK = 'BOOKMARK'


OBJECT_EVENT_TYPES = frozenset({EventType.ADDED, EventType.MODIFIED, EventType.DELETED})


class WatchEvent(pydantic.BaseModel, Generic[ObjectT]):
    """
    A single decoded event of a watch-stream.

    Only one of the payloads is set, depending on the event type:

    * ``ADDED``, ``MODIFIED``, ``DELETED``: the ``object`` (and its version).
    * ``BOOKMARK``: only the ``resource_version``, no object.
    * ``ERROR``: only the ``status`` as sent by the server.
    """
    model_config = pydantic.ConfigDict(frozen=True)

    type: EventType
    object: Optional[ObjectT] = None
    status: Optional[Status] = None
    resource_version: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any, item_cls: Type[ObjectT]) -> 'WatchEvent[ObjectT]':
        return decode(cls[item_cls], raw)  # type: ignore[index]

    @pydantic.model_validator(mode='before')
    @classmethod
    def _route_payload(cls, data: Any) -> Any:
        # The wire events carry all kinds of payloads in one key; the typed ones are left as is.
        if not isinstance(data, Mapping) or 'object' not in data:
            return data
        etype, payload = data.get('type'), data['object']
        if etype == EventType.ERROR:
            return {'type': etype, 'status': payload}
        elif etype == EventType.BOOKMARK and isinstance(payload, Mapping):
            return {'type': etype, 'resource_version': _get_version(payload)}
        else:
            version = data.get('resource_version') or _get_version(payload)
            return {'type': etype, 'object': payload, 'resource_version': version}

    @pydantic.model_validator(mode='after')
    def _check_payload(self) -> 'WatchEvent[ObjectT]':
        if self.type in OBJECT_EVENT_TYPES and self.object is None:
            raise ValueError(f"the {self.type.value} event has no object")
        if self.type == EventType.ERROR and self.status is None:
            raise ValueError("the ERROR event has no status")
        if self.type == EventType.BOOKMARK and self.resource_version is None:
            raise ValueError("the BOOKMARK event has no resource version")
        return self


def decode(cls: Type[Any], raw: Any, *, path: str = '') -> Any:
    """
    Validate a raw payload as received from the server into a typed model.

    The validation errors are reported as `errors.DecodeError` with the wire
    path of the first failing field, prefixed with the ``path`` of the payload.
    """
    try:
        return cls.model_validate(raw, context={RECEIVED: True})
    except pydantic.ValidationError as e:
        first = e.errors(include_url=False)[0]
        where = path
        for key in first['loc']:
            where = f'{where}[{key}]' if isinstance(key, int) else f'{where}.{key}' if where else key
        subject = f"Field {where!r}" if where else "The document"
        more = f" (and {e.error_count() - 1} more errors)" if e.error_count() > 1 else ""
        raise errors.DecodeError(f"{subject}: {first['msg']}{more}", path=where) from e


def _get_version(payload: Any) -> Any:
    if isinstance(payload, Object):
        return payload.resource_version
    metadata = payload.get('metadata') if isinstance(payload, Mapping) else None
    return metadata.get('resourceVersion') if isinstance(metadata, Mapping) else None
