"""
Data models for vcluster lifecycle management.
"""
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

ERROR = "error"
WARNING = "warning"

@dataclass
class VClusterSpec:
    """Desired state of a virtual cluster as declared by the caller."""
    name: str
    distro: Optional[str] = None
    namespace: Optional[str] = None
    context: Optional[str] = None
    # None means the field was not set at all
    create_namespace: Optional[bool] = None
    disable_ingress_sync: Optional[bool] = None
    expose: Optional[bool] = None
    expose_local: Optional[bool] = None
    isolate: Optional[bool] = None
    kubernetes_version: Optional[str] = None
    # Accepted but not passed to vcluster
    chart: Optional[str] = None
    chart_version: Optional[str] = None
    chart_repo: Optional[str] = None
    local_chart_dir: Optional[str] = None
    extra_values: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None and v != []}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VClusterSpec":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

@dataclass
class ObservedState:
    """State reported back by `vcluster list`."""
    status: Optional[str] = None
    created: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "created": self.created.isoformat() if self.created else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ObservedState":
        data = data or {}
        created = data.get("created")
        return cls(
            status=data.get("status"),
            created=parse_timestamp(created) if created else None,
        )

@dataclass
class ListEntry:
    """One cluster as reported by `vcluster list --output json`."""
    name: str = ""
    namespace: str = ""
    status: str = ""
    created: Optional[datetime] = None
    context: str = ""

    @classmethod
    def from_json(cls, item: Optional[Dict[str, Any]]) -> "ListEntry":
        """Build an entry from one element of the list output.

        Keys match case-insensitively. A null element or null field leaves
        the zero value; an empty or malformed `Created` is a decode error.
        """
        if item is None:
            return cls()
        if not isinstance(item, dict):
            raise ValueError(f"expected a JSON object, got {type(item).__name__}")
        created = _lookup(item, "Created")
        return cls(
            name=_string_field(item, "Name"),
            namespace=_string_field(item, "Namespace"),
            status=_string_field(item, "Status"),
            created=None if created is None else parse_timestamp(created),
            context=_string_field(item, "Context"),
        )

@dataclass
class ResourceState:
    """The record a host keeps for one vcluster resource.

    `id` is the existence signal: an empty id means the resource does not exist.
    """
    spec: VClusterSpec
    id: str = ""
    observed: ObservedState = field(default_factory=ObservedState)

    @property
    def exists(self) -> bool:
        return bool(self.id)

    def with_changes(self, **changes) -> "ResourceState":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "spec": self.spec.to_dict(),
            "observed": self.observed.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceState":
        return cls(
            spec=VClusterSpec.from_dict(data["spec"]),
            id=data.get("id", ""),
            observed=ObservedState.from_dict(data.get("observed")),
        )

@dataclass
class Diagnostic:
    """A problem reported back to the host."""
    severity: str
    summary: str
    detail: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

@dataclass
class OperationResult:
    """Outcome of a lifecycle operation: the new record plus diagnostics."""
    state: ResourceState
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not has_errors(self.diagnostics)

def has_errors(diagnostics: List[Diagnostic]) -> bool:
    return any(d.severity == ERROR for d in diagnostics)

def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp such as 2022-12-09T03:12:10Z."""
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 accepts at most 6 fractional digits
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits, rest = digits + rest[0], rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    return datetime.fromisoformat(text)

def _lookup(item: Dict[str, Any], key: str) -> Any:
    """Exact key first, then the first key equal to it ignoring case."""
    if key in item:
        return item[key]
    folded = key.casefold()
    for k, v in item.items():
        if k.casefold() == folded:
            return v
    return None

def _string_field(item: Dict[str, Any], key: str) -> str:
    value = _lookup(item, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value
