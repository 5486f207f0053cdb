"""Parse Azure resource identifiers and classify Azure NetApp Files resources.

Identifiers have the shape::

    /subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.NetApp/
        netAppAccounts/{account}/capacityPools/{pool}/volumes/{volume}/snapshots/{snapshot}

Value extraction works on the ``/``-separated segments and matches markers
case-insensitively, returning values in their original case. Classification
uses exact-case markers, most specific kind first.
"""

from __future__ import annotations

import enum
from typing import List, Optional, Sequence, Tuple

from .errors import InvalidArgumentError

NETAPP_PROVIDER = "Microsoft.NetApp"

SUBSCRIPTIONS_MARKER = "/subscriptions"
RESOURCE_GROUPS_MARKER = "/resourceGroups"
PROVIDERS_MARKER = "/providers"
ACCOUNTS_MARKER = "/netAppAccounts"
CAPACITY_POOLS_MARKER = "/capacityPools"
VOLUMES_MARKER = "/volumes"
SNAPSHOTS_MARKER = "/snapshots"


class ResourceKind(str, enum.Enum):
    """Azure NetApp Files resource kinds recognised by :func:`classify`."""

    SNAPSHOT = "snapshot"
    VOLUME = "volume"
    CAPACITY_POOL = "capacity_pool"
    ACCOUNT = "account"


# (kind, required marker, markers that disqualify the kind). Checked in order;
# the first kind whose marker is present wins, so kinds are mutually exclusive.
CLASSIFICATION_ORDER: Tuple[Tuple[ResourceKind, str, Tuple[str, ...]], ...] = (
    (ResourceKind.SNAPSHOT, "/snapshots/", ()),
    (ResourceKind.VOLUME, "/volumes/", ()),
    (ResourceKind.CAPACITY_POOL, "/capacityPools/", ()),
    (ResourceKind.ACCOUNT, "/netAppAccounts/", ("/backupPolicies/",)),
)

_RESOURCE_GROUPS_SEGMENT = "resourcegroups"


def _require(value: Optional[str], name: str) -> str:
    if value is None or not value.strip():
        raise InvalidArgumentError(f"{name} cannot be blank")
    return value.strip()


def _segments(value: str) -> List[str]:
    return [segment for segment in value.split("/") if segment]


def _index_of(lowered: Sequence[str], needle: Sequence[str], start: int = 0) -> int:
    width = len(needle)
    for position in range(start, len(lowered) - width + 1):
        if list(lowered[position : position + width]) == list(needle):
            return position
    return -1


def _last_index_of(lowered: Sequence[str], needle: Sequence[str]) -> int:
    width = len(needle)
    for position in range(len(lowered) - width, -1, -1):
        if list(lowered[position : position + width]) == list(needle):
            return position
    return -1


def _segment_at(segments: Sequence[str], position: int) -> str:
    return segments[position] if 0 <= position < len(segments) else ""


def get_resource_value(resource_uri: str, marker: str) -> str:
    """Return the segment that follows ``marker`` in ``resource_uri``.

    Returns an empty string when the marker is absent or nothing follows it.

    Two name collisions with the resource group are resolved structurally:

    * the resource group is itself named like the marker
      (``/resourceGroups/volumes/...``): the marker is looked up from the end
      of the identifier instead;
    * the value after the marker equals the resource group name: the result
      is the segment following the last occurrence of that name (or the name
      itself when it is the final segment).

    Raises:
        InvalidArgumentError: If either argument is blank.
    """
    resource_uri = _require(resource_uri, "resource_uri")
    marker = _require(marker, "marker")

    segments = _segments(resource_uri)
    lowered = [segment.lower() for segment in segments]
    needle = [segment.lower() for segment in _segments(marker)]
    if not needle:
        # A bare "/" marker matches the leading separator.
        return _segment_at(segments, 0)

    rg_position = _index_of(lowered, [_RESOURCE_GROUPS_SEGMENT])
    resource_group = _segment_at(lowered, rg_position + 1) if rg_position > -1 else ""

    if rg_position > -1 and _index_of(lowered, [_RESOURCE_GROUPS_SEGMENT, *needle]) > -1:
        position = _last_index_of(lowered, needle)
        if position == rg_position + 1:
            return ""
        return _segment_at(segments, position + len(needle))

    position = _index_of(lowered, needle)
    if position < 0:
        return ""
    value = _segment_at(segments, position + len(needle))

    if (
        value
        and resource_group
        and needle != [_RESOURCE_GROUPS_SEGMENT]
        and value.lower() == resource_group
    ):
        last = _last_index_of(lowered, [resource_group])
        return _segment_at(segments, last + 1) or value

    return value


def get_resource_name(resource_uri: str) -> str:
    """Return everything after the final ``/`` of ``resource_uri``."""
    resource_uri = _require(resource_uri, "resource_uri")
    return resource_uri[resource_uri.rfind("/") + 1 :]


def get_subscription(resource_uri: str) -> str:
    _require(resource_uri, "resource_uri")
    return get_resource_value(resource_uri, SUBSCRIPTIONS_MARKER)


def get_resource_group(resource_uri: str) -> str:
    _require(resource_uri, "resource_uri")
    return get_resource_value(resource_uri, RESOURCE_GROUPS_MARKER)


def get_anf_account(resource_uri: str) -> str:
    _require(resource_uri, "resource_uri")
    return get_resource_value(resource_uri, ACCOUNTS_MARKER)


def get_anf_capacity_pool(resource_uri: str) -> str:
    _require(resource_uri, "resource_uri")
    return get_resource_value(resource_uri, CAPACITY_POOLS_MARKER)


def get_anf_volume(resource_uri: str) -> str:
    _require(resource_uri, "resource_uri")
    return get_resource_value(resource_uri, VOLUMES_MARKER)


def get_anf_snapshot(resource_uri: str) -> str:
    _require(resource_uri, "resource_uri")
    return get_resource_value(resource_uri, SNAPSHOTS_MARKER)


def is_anf_resource(resource_uri: Optional[str]) -> bool:
    """Return ``True`` if the identifier belongs to the NetApp provider."""
    if resource_uri is None or not resource_uri.strip():
        return False
    return NETAPP_PROVIDER in resource_uri


def classify(resource_uri: Optional[str]) -> Optional[ResourceKind]:
    """Return the NetApp resource kind named by ``resource_uri``, if any."""
    if not is_anf_resource(resource_uri):
        return None
    for kind, required, excluded in CLASSIFICATION_ORDER:
        if required in resource_uri:
            if any(marker in resource_uri for marker in excluded):
                return None
            return kind
    return None


def is_anf_snapshot(resource_uri: Optional[str]) -> bool:
    return classify(resource_uri) is ResourceKind.SNAPSHOT


def is_anf_volume(resource_uri: Optional[str]) -> bool:
    return classify(resource_uri) is ResourceKind.VOLUME


def is_anf_capacity_pool(resource_uri: Optional[str]) -> bool:
    return classify(resource_uri) is ResourceKind.CAPACITY_POOL


def is_anf_account(resource_uri: Optional[str]) -> bool:
    return classify(resource_uri) is ResourceKind.ACCOUNT
