"""
Catalog response normalizer.

The Apple Music API (and the SDKs wrapping it) hand back resource lists in
several envelopes depending on endpoint and version:

    [ ... ]
    {"data": [ ... ]}
    {"items": [ ... ]}
    {"data": {"data": [ ... ]}} / {"data": {"items": [ ... ]}}
    {"results": [ ... ]}

``decode_resource_list`` tries each known shape in priority order and returns a
tagged result; an unrecognized shape decodes to ``NoResources`` instead of
raising.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceList:
    resources: List[Any] = field(default_factory=list)
    shape: str = "array"


@dataclass(frozen=True)
class SingleResource:
    resource: Any
    shape: str = "first"


@dataclass(frozen=True)
class NoResources:
    pass


CatalogEnvelope = Union[ResourceList, SingleResource, NoResources]

# Priority order matters: the bare array wins over any wrapper
ENVELOPE_PATHS: Tuple[Tuple[str, ...], ...] = (
    (),
    ("data",),
    ("items",),
    ("data", "data"),
    ("data", "items"),
    ("results",),
)


def _walk(value: Any, path: Tuple[str, ...]) -> Any:
    node = value
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _match_list(value: Any) -> Optional[ResourceList]:
    if not value:
        return None
    for path in ENVELOPE_PATHS:
        node = _walk(value, path)
        if isinstance(node, list):
            return ResourceList(resources=node, shape=".".join(path) or "array")
    return None


def decode_resource_list(value: Any) -> Union[ResourceList, NoResources]:
    if not value:
        return NoResources()

    matched = _match_list(value)
    if matched is not None:
        return matched

    # Functionally an empty result, but usually means the API contract moved
    keys = sorted(value.keys()) if isinstance(value, dict) else type(value).__name__
    logger.warning(f"[catalog] unrecognized resource envelope keys={keys}")
    return NoResources()


def decode_single_resource(value: Any) -> Union[SingleResource, NoResources]:
    """
    First listed resource, else a `.data` object, else the value itself.

    An empty list decodes to NoResources rather than being handed back as the
    "resource", so callers never see a list where they expect an object.
    """
    matched = _match_list(value)
    if matched is not None and matched.resources:
        return SingleResource(resource=matched.resources[0], shape="first")

    data = value.get("data") if isinstance(value, dict) else None
    if isinstance(data, dict):
        return SingleResource(resource=data, shape="data")

    if value is None or isinstance(value, list):
        return NoResources()
    return SingleResource(resource=value, shape="raw")


def normalize_resource_array(value: Any) -> List[Any]:
    decoded = decode_resource_list(value)
    if isinstance(decoded, ResourceList):
        return decoded.resources
    return []


def pick_first_resource(value: Any) -> Optional[Any]:
    decoded = decode_single_resource(value)
    if isinstance(decoded, SingleResource):
        return decoded.resource
    return None
