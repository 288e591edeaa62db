"""
Data models for VLAN path validation.

These dataclasses provide structured, immutable representations of the
records parsed from APIC CLI output and of the validation verdicts.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class PathStatus(str, Enum):
    """Verdict for a VLAN on one endpoint path."""
    ALLOWED = "allowed"
    NOT_ALLOWED = "not_allowed"


@dataclass(frozen=True)
class EndpointRecord:
    """Represents the endpoint data parsed from one 'show endpoints' dump."""
    vlan: str
    paths: Tuple[str, ...]
    ip: str = ""
    pod: str = ""
    node_paths: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    path_ips: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # read-only views so the record stays a value object
        object.__setattr__(self, "node_paths", MappingProxyType(dict(self.node_paths)))
        object.__setattr__(self, "path_ips", MappingProxyType(dict(self.path_ips)))

    def __hash__(self) -> int:
        return hash((
            self.vlan, self.paths, self.ip, self.pod,
            tuple(sorted(self.node_paths.items())),
            tuple(sorted(self.path_ips.items()))
        ))

    def node_for_path(self, path: str) -> Optional[str]:
        """Return the leaf node the path was seen on, if the dump said so."""
        for node, paths in self.node_paths.items():
            if path in paths:
                return node
        return None

    def with_vlan(self, vlan: str) -> "EndpointRecord":
        return replace(self, vlan=vlan)

    def __str__(self) -> str:
        addr = self.ip or "unknown"
        return f"{addr} vlan-{self.vlan} ({', '.join(self.paths)})"


@dataclass(frozen=True)
class PathAttachment:
    """Represents one fvRsPathAtt static path binding."""
    vlan: str
    epg: str
    path: str
    full_path: str
    pod: str
    node_id: str = ""
    is_vpc: bool = False
    tenant: str = ""

    def __str__(self) -> str:
        return f"{self.epg} -> {self.full_path}"


@dataclass(frozen=True)
class ValidationResult:
    """Represents the VLAN verdict for a single endpoint path."""
    path: str
    has_active_endpoint: bool
    is_vlan_allowed: bool
    status: PathStatus

    def __str__(self) -> str:
        return f"{self.path}: {self.status.value}"


@dataclass(frozen=True)
class ValidationEntry:
    """One endpoint dump paired with the EPG it should be allowed in."""
    endpoint_text: str
    epg_name: str


@dataclass(frozen=True)
class EntryResult:
    """Outcome of validating one entry against the shared attachment list."""
    entry: ValidationEntry
    endpoint: Optional[EndpointRecord] = None
    vlan: str = ""
    results: Tuple[ValidationResult, ...] = ()
    error: Optional[str] = None

    @property
    def denied(self) -> Tuple[ValidationResult, ...]:
        return tuple(r for r in self.results if r.status is PathStatus.NOT_ALLOWED)
