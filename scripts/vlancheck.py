#!/usr/bin/env python3

import os
import sys
import logging
import argparse
from dotenv import load_dotenv
from typing import List, Optional, Sequence, Tuple

# Import local modules
from aci_config import DEFAULT_LOG_LEVEL, DEFAULT_POD, ENV_DEFAULT_POD, ENV_LOG_LEVEL
from aci_models import ValidationEntry
from aci_parsers import parse_endpoint_output, parse_moquery_output
from aci_tree import build_attachment_tree, build_result_tree
from aci_validator import NoValidationIssuesError, csv_filename, export_csv, validate_entries

logger = logging.getLogger(__name__)

# -------------------------------
# Argument Parsing
# -------------------------------

def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        description="Validate that EPG VLANs are allowed on every path an endpoint is learned on"
    )
    parser.add_argument("--default-pod", help=f"Pod used when none can be inferred (default: {DEFAULT_POD})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ep_parser = subparsers.add_parser("endpoint", help="Parse 'show endpoints' output")
    ep_parser.add_argument("file", help="File holding the output ('-' for stdin)")

    mq_parser = subparsers.add_parser("moquery", help="Parse 'moquery -c fvRsPathAtt' output")
    mq_parser.add_argument("file", help="File holding the output ('-' for stdin)")

    val_parser = subparsers.add_parser("validate", help="Validate endpoint paths against fvRsPathAtt bindings")
    val_parser.add_argument("moquery", help="File holding 'moquery -c fvRsPathAtt ... | grep dn' output")
    val_parser.add_argument(
        "-e", "--entry", nargs=2, action="append", required=True, metavar=("ENDPOINT_FILE", "EPG_NAME"),
        help="Endpoint output file and the EPG it belongs to (e.g., EPG-VLAN623-10.204.85.128-27)"
    )
    val_parser.add_argument(
        "--csv", nargs="?", const="", default=None, metavar="PATH",
        help="Export denied paths as CSV (default name: vlan-validation-<date>.csv)"
    )

    return parser.parse_args(argv)


def read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

# -------------------------------
# Validator Class
# -------------------------------

class VlanCheck:
    def __init__(self, default_pod: str = DEFAULT_POD) -> None:
        self.default_pod = default_pod

    def handle_endpoint_command(self, text: str) -> int:
        """Print the record parsed from one endpoint dump."""
        endpoint = parse_endpoint_output(text)
        if endpoint is None:
            logger.error("Could not parse endpoint data (need a vlan-<id> and at least one path)")
            return 1

        print(f"VLAN: {endpoint.vlan}")
        print(f"IP:   {endpoint.ip or '-'}")
        print("Paths:")
        for path in endpoint.paths:
            node = endpoint.node_for_path(path)
            print(f"  {path}" + (f" (node {node})" if node else ""))
        return 0

    def handle_moquery_command(self, text: str) -> int:
        """Print parsed attachments grouped by VLAN and EPG."""
        attachments = parse_moquery_output(text)
        if not attachments:
            logger.error("Unable to parse moquery data. Please check your input.")
            return 1

        build_attachment_tree(attachments).print(label=f"{len(attachments)} path attachment(s):")
        return 0

    def handle_validate_command(self, moquery_text: str, entries: List[ValidationEntry],
                                csv_path: Optional[str] = None) -> int:
        """Validate every entry, print the verdicts and optionally export denied paths."""
        attachments = parse_moquery_output(moquery_text)
        outcome = validate_entries(entries, attachments)

        build_result_tree(outcome).print(label="VLAN validation results:")

        total_denied = sum(len(o.denied) for o in outcome)
        print(f"\n{total_denied} path(s) not allowed")

        if csv_path is None:
            return 0

        try:
            csv_text = export_csv(outcome, attachments, self.default_pod)
        except NoValidationIssuesError as e:
            logger.error(str(e))
            return 1

        target = csv_path or csv_filename()
        with open(target, "w", encoding="utf-8") as f:
            f.write(csv_text + "\n")
        logger.info(f"Exported {total_denied} path(s) to {target}")
        return 0


def resolve_log_level(raw: Optional[str]) -> Tuple[str, bool]:
    """Return (level name, was valid); unknown names fall back to the default level."""
    name = (raw or DEFAULT_LOG_LEVEL).strip().upper()
    if isinstance(logging.getLevelName(name), int):
        return name, True
    return DEFAULT_LOG_LEVEL, False


def input_files(args) -> List[str]:
    if args.command == "validate":
        return [args.moquery] + [f for f, _ in args.entry]
    return [args.file]

# =========================================================================
# Main Function
# =========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the VLAN path validator."""
    load_dotenv()

    raw_level = os.environ.get(ENV_LOG_LEVEL)
    level, level_ok = resolve_log_level(raw_level)
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        stream=sys.stdout
    )
    if not level_ok:
        logger.warning(f"Invalid {ENV_LOG_LEVEL}={raw_level!r}, using {DEFAULT_LOG_LEVEL}")

    args = parse_args(argv)
    checker = VlanCheck(args.default_pod or os.environ.get(ENV_DEFAULT_POD) or DEFAULT_POD)

    if input_files(args).count("-") > 1:
        logger.error("Standard input ('-') can only be used for one input file")
        return 1

    try:
        if args.command == "endpoint":
            return checker.handle_endpoint_command(read_text(args.file))
        elif args.command == "moquery":
            return checker.handle_moquery_command(read_text(args.file))
        elif args.command == "validate":
            entries = [ValidationEntry(endpoint_text=read_text(f), epg_name=epg) for f, epg in args.entry]
            return checker.handle_validate_command(read_text(args.moquery), entries, args.csv)
    except OSError as e:
        logger.error(f"File access failed: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
