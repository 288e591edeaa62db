"""
VLAN allowance validation and denied-path export.

Cross-references parsed endpoint records against fvRsPathAtt bindings and
rebuilds the fully-qualified path of every denied interface so it can be
fed to remediation tooling as CSV.
"""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from aci_config import (
    CSV_FILENAME_TEMPLATE, CSV_HEADER, DEFAULT_POD,
    UNKNOWN_NODE_PLACEHOLDER, UNMATCHED_POLICY
)
from aci_models import (
    EndpointRecord, EntryResult, PathAttachment, PathStatus,
    ValidationEntry, ValidationResult
)
from aci_parsers import (
    RE_FULL_PATH_PATHS, RE_FULL_PATH_PROTPATHS, RE_SINGLE_NODE, RE_VPC_NODES,
    build_full_path, extract_vlan_from_epg, format_epg_name,
    normalize_path_name, parse_endpoint_output, parse_regex
)

logger = logging.getLogger(__name__)


class NoValidationIssuesError(ValueError):
    """Raised when an export is requested but no path was denied."""


# -------------------------------------------------------
# Validation
# -------------------------------------------------------

def _path_lookup(attachments: Iterable[PathAttachment]) -> Dict[str, PathAttachment]:
    # last write wins on duplicate normalized names
    return {normalize_path_name(att.path): att for att in attachments}


def validate_vlan_allowances(
    endpoint: EndpointRecord,
    attachments: Sequence[PathAttachment],
    unmatched_policy: str = UNMATCHED_POLICY
) -> List[ValidationResult]:
    """
    Decide, for every endpoint path, whether the endpoint VLAN is bound to it.

    Args:
        endpoint: Parsed endpoint record
        attachments: All parsed path attachments (any VLAN)
        unmatched_policy: Verdict for paths without a binding; only "deny" is supported

    Returns:
        One ValidationResult per endpoint path, in endpoint path order
    """
    if unmatched_policy != "deny":
        raise ValueError(f"Unsupported unmatched policy: {unmatched_policy!r}")

    allowed = _path_lookup(att for att in attachments if att.vlan == endpoint.vlan)

    results = []
    for path in endpoint.paths:
        is_allowed = normalize_path_name(path) in allowed
        results.append(ValidationResult(
            path=path,
            has_active_endpoint=True,
            is_vlan_allowed=is_allowed,
            status=PathStatus.ALLOWED if is_allowed else PathStatus.NOT_ALLOWED
        ))
    return results


def validate_entries(
    entries: Sequence[ValidationEntry],
    attachments: Sequence[PathAttachment]
) -> List[EntryResult]:
    """
    Validate several endpoint dumps against one shared attachment list.

    A VLAN embedded in the entry's EPG name overrides the VLAN found in the
    endpoint dump. Entries that cannot be parsed carry an error message and
    no results.
    """
    if not attachments:
        logger.warning("No path attachments parsed; every endpoint path will be reported as not allowed")

    outcome = []
    for index, entry in enumerate(entries, start=1):
        if not entry.endpoint_text.strip():
            logger.warning(f"Entry #{index}: no endpoint data")
            outcome.append(EntryResult(entry=entry, error="No endpoint data"))
            continue

        if not entry.epg_name.strip():
            logger.warning(f"Entry #{index}: no EPG name")
            outcome.append(EntryResult(entry=entry, error="No EPG name"))
            continue

        endpoint = parse_endpoint_output(entry.endpoint_text)
        if endpoint is None:
            logger.warning(f"Entry #{index}: could not parse endpoint data")
            outcome.append(EntryResult(entry=entry, error="Could not parse endpoint data"))
            continue

        vlan = extract_vlan_from_epg(entry.epg_name) or endpoint.vlan
        if vlan != endpoint.vlan:
            logger.info(f"Entry #{index}: using VLAN {vlan} from EPG name instead of vlan-{endpoint.vlan}")
            endpoint = endpoint.with_vlan(vlan)

        results = validate_vlan_allowances(endpoint, attachments)
        outcome.append(EntryResult(entry=entry, endpoint=endpoint, vlan=vlan, results=tuple(results)))

    return outcome


# -------------------------------------------------------
# Path Reconstruction
# -------------------------------------------------------

def resolve_default_pod(vlan: str, attachments: Sequence[PathAttachment], fallback: str = DEFAULT_POD) -> str:
    """Pod of the first attachment bound to the VLAN, else the fallback pod."""
    for att in attachments:
        if att.vlan == vlan:
            return att.pod
    return fallback


def find_pod_for_vpc(node1: str, node2: str, attachments: Sequence[PathAttachment]) -> Optional[str]:
    for att in attachments:
        match = parse_regex(RE_FULL_PATH_PROTPATHS, att.full_path)
        if match and match["n1"] == node1 and match["n2"] == node2:
            return att.pod
    return None


def find_pod_for_node(node: str, attachments: Sequence[PathAttachment]) -> Optional[str]:
    for att in attachments:
        match = parse_regex(RE_FULL_PATH_PATHS, att.full_path)
        if match and match["node"] == node:
            return att.pod
    return None


def reconstruct_full_path(
    path: str,
    attachments: Sequence[PathAttachment],
    default_pod: str,
    node_hint: Optional[str] = None
) -> str:
    """
    Rebuild the fully-qualified path of a denied endpoint path.

    Resolution order:
        1. exact (normalized) name match -> that attachment's full path
        2. VPC name (n1-n2-VPC...)       -> pod/protpaths-n1-n2/pathep-[path]
        3. single-homed (node- / node/ or node_hint) -> pod/paths-node/pathep-[path]
        4. anything else                 -> pod/paths-XXX/pathep-[path]

    Args:
        path: Endpoint path name as parsed
        attachments: All parsed path attachments (any VLAN)
        default_pod: Pod used when no attachment reveals one
        node_hint: Leaf node the endpoint dump associated with the path

    Returns:
        Fully-qualified path string
    """
    exact = _path_lookup(attachments).get(normalize_path_name(path))
    if exact:
        return exact.full_path

    vpc = parse_regex(RE_VPC_NODES, path)
    if vpc:
        node_id = f"{vpc['n1']}-{vpc['n2']}"
        pod = find_pod_for_vpc(vpc["n1"], vpc["n2"], attachments) or default_pod
        return build_full_path(pod, node_id, path, is_vpc=True)

    single = parse_regex(RE_SINGLE_NODE, path)
    node = single["node"] if single else node_hint
    if node:
        pod = find_pod_for_node(node, attachments) or default_pod
        return build_full_path(pod, node, path, is_vpc=False)

    return build_full_path(default_pod, UNKNOWN_NODE_PLACEHOLDER, path, is_vpc=False)


# -------------------------------------------------------
# CSV Export
# -------------------------------------------------------

def generate_csv_rows(
    vlan: str,
    epg: str,
    results: Iterable[ValidationResult],
    attachments: Sequence[PathAttachment],
    endpoint: Optional[EndpointRecord] = None,
    fallback_pod: str = DEFAULT_POD
) -> List[str]:
    """Build 'VLAN,EPG,PATH' data rows for the denied results, in input order."""
    epg_label = format_epg_name(epg)
    default_pod = resolve_default_pod(vlan, attachments, fallback_pod)

    rows = []
    for result in results:
        if result.status is not PathStatus.NOT_ALLOWED:
            continue
        node_hint = endpoint.node_for_path(result.path) if endpoint else None
        full_path = reconstruct_full_path(result.path, attachments, default_pod, node_hint)
        rows.append(f"{vlan},{epg_label},{full_path}")
    return rows


def generate_csv(
    vlan: str,
    epg: str,
    results: Iterable[ValidationResult],
    attachments: Sequence[PathAttachment],
    endpoint: Optional[EndpointRecord] = None,
    fallback_pod: str = DEFAULT_POD
) -> str:
    """Single-entry CSV export (header plus one row per denied path)."""
    rows = generate_csv_rows(vlan, epg, results, attachments, endpoint, fallback_pod)
    return "\n".join([CSV_HEADER] + rows)


def export_csv(
    entry_results: Iterable[EntryResult],
    attachments: Sequence[PathAttachment],
    fallback_pod: str = DEFAULT_POD
) -> str:
    """
    Bulk CSV export across all validated entries.

    Raises:
        NoValidationIssuesError: If no entry has a denied path
    """
    rows: List[str] = []
    for outcome in entry_results:
        if outcome.endpoint is None or not outcome.denied:
            continue
        rows.extend(generate_csv_rows(
            outcome.vlan,
            outcome.entry.epg_name,
            outcome.denied,
            attachments,
            outcome.endpoint,
            fallback_pod
        ))

    if not rows:
        raise NoValidationIssuesError("No validation issues to export.")

    return "\n".join([CSV_HEADER] + rows)


def csv_filename(day: Optional[date] = None) -> str:
    """e.g. vlan-validation-2024-05-01.csv"""
    return CSV_FILENAME_TEMPLATE.format(date=(day or date.today()).isoformat())
