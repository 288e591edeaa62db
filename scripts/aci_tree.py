"""
Tree building and printing utilities for validation output.
"""

from typing import Dict, List, Any, Optional, Sequence

from aci_models import EntryResult, PathAttachment, PathStatus

STATUS_LABELS = {
    PathStatus.ALLOWED: "OK - VLAN allowed on path",
    PathStatus.NOT_ALLOWED: "NOK - VLAN not allowed on path",
}


class ValidationTreeBuilder:
    """
    Helper class for building and printing hierarchical tree structures
    of parsed attachments and validation verdicts.
    """

    def __init__(self):
        """Initialize an empty tree."""
        self.tree: Dict[str, Any] = {}

    def add(self, *levels: str, label: str) -> None:
        """
        Add a leaf to the tree under the given levels.

        Labels are kept whole; fully-qualified paths contain '/' and are
        not split into sub-levels.

        Raises:
            ValueError: If no levels are provided

        Example:
            tree.add("Entry #1: VLAN 623", "NOK - VLAN not allowed on path", label="eth1/5")
        """
        if not levels:
            raise ValueError("At least one level must be provided")

        node = self.tree
        for level in levels:
            node = node.setdefault(level, {})

        leaf_list = node.setdefault('_leaf', [])
        if label not in leaf_list:
            leaf_list.append(label)

    def render(self) -> List[str]:
        """Return the tree as indented lines."""
        lines: List[str] = []
        self._walk(self.tree, 0, lines)
        return lines

    def print(self, label: Optional[str] = None) -> None:
        if label:
            print(label)
        for line in self.render():
            print(line)

    def _walk(self, node: Dict[str, Any], depth: int, lines: List[str]) -> None:
        indent = "  " * depth
        for k, v in node.items():
            if k == "_leaf":
                lines.extend(f"{indent}{item}" for item in v)
            else:
                lines.append(f"{indent}{k}")
                self._walk(v, depth + 1, lines)


def build_attachment_tree(attachments: Sequence[PathAttachment]) -> ValidationTreeBuilder:
    """Group attachments as VLAN -> tenant/EPG -> full path."""
    tree = ValidationTreeBuilder()
    for att in sorted(attachments, key=lambda a: int(a.vlan)):
        epg = f"{att.tenant}/{att.epg}" if att.tenant else att.epg
        tree.add(f"VLAN {att.vlan}", epg, label=att.full_path)
    return tree


def build_result_tree(entry_results: Sequence[EntryResult]) -> ValidationTreeBuilder:
    """Group verdicts as entry -> status -> path (with endpoint IP when known)."""
    tree = ValidationTreeBuilder()
    for index, outcome in enumerate(entry_results, start=1):
        if outcome.error or outcome.endpoint is None:
            tree.add(f"Entry #{index}: {outcome.entry.epg_name or '-'}", label=f"[!] {outcome.error}")
            continue

        heading = f"Entry #{index}: VLAN {outcome.vlan} - {outcome.entry.epg_name}"
        for result in outcome.results:
            ip = outcome.endpoint.path_ips.get(result.path)
            label = f"{ip} {result.path}" if ip else result.path
            tree.add(heading, STATUS_LABELS[result.status], label=label)
    return tree
