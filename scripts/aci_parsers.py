"""
APIC CLI output parsing utilities.

This module provides regex patterns and helper functions for turning the
text of 'show endpoints' dumps and 'moquery -c fvRsPathAtt' listings into
structured records. Each field is extracted by an ordered list of patterns;
the first pattern that matches wins.
"""

import logging
import re
from typing import Dict, Any, List, Optional, Sequence, Tuple
from aci_config import EPG_PREFIX
from aci_models import EndpointRecord, PathAttachment

logger = logging.getLogger(__name__)


# -------------------------------------------------------
#  COMPILED REGEX PATTERNS (compiled once, reused everywhere)
# -------------------------------------------------------

# Endpoint dump tokens
RE_HEADER_NODE = re.compile(r"\bnode\b", re.IGNORECASE)
RE_HEADER_INTERFACE = re.compile(r"\binterface\b", re.IGNORECASE)
RE_ENCAP_VLAN = re.compile(r"vlan-(?P<vlan>\d+)", re.IGNORECASE)
RE_IPV4 = re.compile(r"\b(?P<ip>(?:\d{1,3}\.){3}\d{1,3})\b")
RE_ETH_LINE = re.compile(
    r"\b(?P<node>\d+)\s+(?P<path>eth\d+/\d+(?:/\d+)?)\b.*?vlan-\d+",
    re.IGNORECASE
)

# VPC interface policy group shapes, tried in order
RE_VPC_KEYWORD = re.compile(r"\bvpc\s+(?P<path>\d+-\d+-VPC-\d+-\d+-PG)\b", re.IGNORECASE)
RE_VPC_GLUED = re.compile(r"\bvpc[:\-]?(?P<path>\d+-\d+-VPC-\d+-\d+-PG)\b", re.IGNORECASE)
RE_VPC_BARE = re.compile(r"\b(?P<path>\d+-\d+-VPC-\d+-\d+-PG)\b", re.IGNORECASE)

VPC_PATH_PATTERNS: Tuple[re.Pattern, ...] = (RE_VPC_KEYWORD, RE_VPC_GLUED, RE_VPC_BARE)

# fvRsPathAtt DNs
RE_PATHATT_VPC = re.compile(
    r"dn\s*:\s*uni/tn-(?P<tenant>[^/]+)/ap-[^/]+/epg-(?P<epg>[^/]+)/rspathAtt-\["
    r"topology/(?P<pod>pod-\d+)/protpaths-(?P<node>[\d()X-]+)/pathep-\[(?P<path>[^\]]+)\]\]",
    re.IGNORECASE
)
RE_PATHATT_SINGLE = re.compile(
    r"dn\s*:\s*uni/tn-(?P<tenant>[^/]+)/ap-[^/]+/epg-(?P<epg>[^/]+)/rspathAtt-\["
    r"topology/(?P<pod>pod-\d+)/paths-(?P<node>[\d()X]+)/pathep-\[(?P<path>[^\]]+)\]\]",
    re.IGNORECASE
)

# (pattern, is_vpc) in precedence order
PATH_ATTACHMENT_PATTERNS: Tuple[Tuple[re.Pattern, bool], ...] = (
    (RE_PATHATT_VPC, True),
    (RE_PATHATT_SINGLE, False),
)

RE_EPG_VLAN = re.compile(r"VLAN(?P<vlan>\d+)", re.IGNORECASE)

# Node ids inferred from bare path names and fully-qualified paths
RE_VPC_NODES = re.compile(r"(?P<n1>[\d()X]+)-(?P<n2>[\d()X]+)-VPC", re.IGNORECASE)
RE_SINGLE_NODE = re.compile(r"^(?P<node>[\d()X]+)[-/]")
RE_FULL_PATH_PROTPATHS = re.compile(r"protpaths-(?P<n1>[\d()X]+)-(?P<n2>[\d()X]+)")
RE_FULL_PATH_PATHS = re.compile(r"/paths-(?P<node>[\d()X]+)/")


def parse_regex(regex: re.Pattern, text: str) -> Optional[Dict[str, Any]]:
    """
    Safe helper to parse text using a compiled regex pattern.

    Args:
        regex: Compiled regex pattern
        text: Text to parse

    Returns:
        Dictionary of named groups if match found, None otherwise
    """
    m = regex.search(text)
    return m.groupdict() if m else None


def parse_first(patterns: Sequence[re.Pattern], text: str) -> Optional[Dict[str, Any]]:
    """Return the named groups of the first pattern in the list that matches."""
    for regex in patterns:
        match = parse_regex(regex, text)
        if match:
            return match
    return None


def normalize_path_name(path: str) -> str:
    """
    Canonical form used to compare path names.

    ' [eth1/5] ' and 'ETH1/5' both normalize to 'eth1/5'.
    """
    return path.strip().replace("[", "").replace("]", "").lower()


def extract_vlan_from_epg(epg_name: str) -> str:
    """
    Extract the VLAN embedded in an EPG name.

    Args:
        epg_name: EPG name (e.g., EPG-VLAN623-10.204.85.128-27)

    Returns:
        VLAN digits or '' if the name carries no VLAN
    """
    match = parse_regex(RE_EPG_VLAN, epg_name)
    return match["vlan"] if match else ""


def format_epg_name(epg_name: str) -> str:
    """Prefix the EPG name with 'epg-' unless it already carries it."""
    epg_name = epg_name.strip()
    if epg_name.lower().startswith(EPG_PREFIX):
        return epg_name
    return f"{EPG_PREFIX}{epg_name}"


def build_full_path(pod: str, node_id: str, path: str, is_vpc: bool) -> str:
    """
    Build a fully-qualified path string.

    Examples:
        pod-2, 425-426, 425-426-VPC-31-32-PG, VPC -> pod-2/protpaths-425-426/pathep-[425-426-VPC-31-32-PG]
        pod-1, 303, eth1/5, single                -> pod-1/paths-303/pathep-[eth1/5]
    """
    kind = "protpaths" if is_vpc else "paths"
    return f"{pod}/{kind}-{node_id}/pathep-[{path}]"


def _is_header(line: str) -> bool:
    return bool(RE_HEADER_NODE.search(line) and RE_HEADER_INTERFACE.search(line))


# -------------------------------------------------------
# Record Factory Functions
# -------------------------------------------------------

def parse_endpoint_output(text: str) -> Optional[EndpointRecord]:
    """
    Parse a 'show endpoints ip x.x.x.x' dump.

    Args:
        text: Raw multi-line CLI output

    Returns:
        EndpointRecord instance, or None if no VLAN or no path was found
    """
    vlan = ""
    ip = ""
    paths: List[str] = []
    node_paths: Dict[str, List[str]] = {}
    path_ips: Dict[str, str] = {}

    for line in (text or "").splitlines():
        if not line.strip() or _is_header(line):
            continue

        vlan_match = parse_regex(RE_ENCAP_VLAN, line)
        if vlan_match and not vlan:
            vlan = vlan_match["vlan"]

        ip_match = parse_regex(RE_IPV4, line)
        line_ip = ip_match["ip"] if ip_match else ""
        if line_ip and not ip:
            ip = line_ip

        found: List[str] = []

        eth_match = parse_regex(RE_ETH_LINE, line)
        if eth_match:
            found.append(eth_match["path"])
            node_list = node_paths.setdefault(eth_match["node"], [])
            if eth_match["path"] not in node_list:
                node_list.append(eth_match["path"])

        vpc_match = parse_first(VPC_PATH_PATTERNS, line)
        if vpc_match:
            found.append(vpc_match["path"])

        for path in found:
            if path not in paths:
                paths.append(path)
            if line_ip:
                path_ips.setdefault(path, line_ip)

    if not vlan or not paths:
        logger.debug("Endpoint output has no usable VLAN/path (vlan=%r, paths=%d)", vlan, len(paths))
        return None

    return EndpointRecord(
        vlan=vlan,
        ip=ip,
        paths=tuple(paths),
        pod="",
        node_paths={node: tuple(p) for node, p in node_paths.items()},
        path_ips=path_ips
    )


def parse_path_attachment(line: str) -> Optional[PathAttachment]:
    """
    Parse one moquery 'dn : ...' line.

    Args:
        line: e.g. dn : uni/tn-T/ap-A/epg-EPG-VLAN623/rspathAtt-[topology/pod-2/paths-303/pathep-[eth1/5]]

    Returns:
        PathAttachment instance or None if the line is not a usable binding
    """
    for regex, is_vpc in PATH_ATTACHMENT_PATTERNS:
        match = parse_regex(regex, line)
        if not match:
            continue

        vlan = extract_vlan_from_epg(match["epg"])
        if not vlan or not match["path"]:
            return None

        return PathAttachment(
            vlan=vlan,
            epg=match["epg"],
            path=match["path"],
            full_path=build_full_path(match["pod"], match["node"], match["path"], is_vpc),
            pod=match["pod"],
            node_id=match["node"],
            is_vpc=is_vpc,
            tenant=match["tenant"]
        )
    return None


def parse_moquery_output(text: str) -> List[PathAttachment]:
    """
    Parse 'moquery -c fvRsPathAtt ... | grep dn' output.

    Lines that do not hold a recognizable binding are skipped, so a
    corrupted line never hides the rest of the listing.
    """
    attachments: List[PathAttachment] = []
    skipped = 0

    for line in (text or "").splitlines():
        if not line.strip():
            continue
        attachment = parse_path_attachment(line)
        if attachment:
            attachments.append(attachment)
        else:
            skipped += 1

    if skipped:
        logger.debug("Skipped %d unparseable moquery line(s)", skipped)
    return attachments
