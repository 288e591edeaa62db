"""
Tests for VLAN allowance validation, path reconstruction and CSV export.
"""
from datetime import date

import pytest

from aci_config import CSV_HEADER, DEFAULT_POD
from aci_models import EndpointRecord, PathAttachment, PathStatus, ValidationEntry, ValidationResult
from aci_parsers import parse_endpoint_output, parse_moquery_output
from aci_validator import (
    NoValidationIssuesError,
    csv_filename,
    export_csv,
    generate_csv,
    reconstruct_full_path,
    resolve_default_pod,
    validate_entries,
    validate_vlan_allowances,
)


def _attachment(vlan, path, full_path, pod):
    return PathAttachment(vlan=vlan, epg=f"EPG-VLAN{vlan}", path=path, full_path=full_path, pod=pod)


def _denied(path):
    return ValidationResult(path=path, has_active_endpoint=True, is_vlan_allowed=False,
                            status=PathStatus.NOT_ALLOWED)


# -------------------------------------------------------
# Validation
# -------------------------------------------------------

def test_validate_marks_bound_paths_allowed(endpoint_output, moquery_output):
    endpoint = parse_endpoint_output(endpoint_output)
    attachments = parse_moquery_output(moquery_output)

    results = validate_vlan_allowances(endpoint, attachments)

    assert [(r.path, r.status) for r in results] == [
        ("425-426-VPC-31-32-PG", PathStatus.ALLOWED),
        ("eth1/5", PathStatus.NOT_ALLOWED),
    ]
    assert all(r.has_active_endpoint for r in results)
    assert [r.is_vlan_allowed for r in results] == [True, False]


def test_validate_only_considers_matching_vlan():
    endpoint = EndpointRecord(vlan="623", paths=("eth1/7",))
    attachments = [_attachment("700", "eth1/7", "pod-2/paths-303/pathep-[eth1/7]", "pod-2")]

    results = validate_vlan_allowances(endpoint, attachments)

    assert results[0].status is PathStatus.NOT_ALLOWED


def test_validate_matches_on_normalized_names():
    endpoint = EndpointRecord(vlan="10", paths=("ETH1/5",))
    attachments = [_attachment("10", "[eth1/5]", "pod-1/paths-101/pathep-[eth1/5]", "pod-1")]

    results = validate_vlan_allowances(endpoint, attachments)

    assert results[0].status is PathStatus.ALLOWED


def test_validate_empty_attachments_denies_everything(endpoint_output):
    endpoint = parse_endpoint_output(endpoint_output)

    results = validate_vlan_allowances(endpoint, [])

    assert {r.status for r in results} == {PathStatus.NOT_ALLOWED}
    assert len(results) == len(endpoint.paths)


def test_validate_rejects_unknown_policy():
    endpoint = EndpointRecord(vlan="10", paths=("eth1/5",))

    with pytest.raises(ValueError):
        validate_vlan_allowances(endpoint, [], unmatched_policy="allow")


# -------------------------------------------------------
# Entries
# -------------------------------------------------------

def test_validate_entries_epg_vlan_overrides_endpoint_vlan(moquery_output):
    attachments = parse_moquery_output(moquery_output)
    entry = ValidationEntry(endpoint_text="303  eth1/10  vlan-713", epg_name="EPG-VLAN623-x")

    [outcome] = validate_entries([entry], attachments)

    assert outcome.vlan == "623"
    assert outcome.endpoint.vlan == "623"
    assert outcome.results[0].status is PathStatus.ALLOWED


def test_validate_entries_keeps_endpoint_vlan_without_epg_vlan():
    entry = ValidationEntry(endpoint_text="303  eth1/5  vlan-713", epg_name="WEB")

    [outcome] = validate_entries([entry], [])

    assert outcome.vlan == "713"
    assert outcome.denied[0].path == "eth1/5"


@pytest.mark.parametrize("text,epg,error", [
    ("", "EPG-VLAN1", "No endpoint data"),
    ("303  eth1/5  vlan-713", "  ", "No EPG name"),
    ("garbage", "EPG-VLAN1", "Could not parse endpoint data"),
])
def test_validate_entries_reports_unusable_entries(text, epg, error):
    [outcome] = validate_entries([ValidationEntry(endpoint_text=text, epg_name=epg)], [])

    assert outcome.error == error
    assert outcome.endpoint is None
    assert outcome.results == ()


# -------------------------------------------------------
# Path reconstruction
# -------------------------------------------------------

def test_default_pod_is_pod_1():
    assert DEFAULT_POD == "pod-1"
    assert resolve_default_pod("623", []) == "pod-1"


def test_default_pod_prefers_first_vlan_attachment():
    attachments = [
        _attachment("700", "eth1/7", "pod-3/paths-303/pathep-[eth1/7]", "pod-3"),
        _attachment("623", "eth1/8", "pod-2/paths-303/pathep-[eth1/8]", "pod-2"),
    ]

    assert resolve_default_pod("623", attachments) == "pod-2"
    assert resolve_default_pod("999", attachments, fallback="pod-9") == "pod-9"


def test_reconstruct_reuses_exact_match_from_any_vlan():
    attachments = [_attachment("700", "eth1/7", "pod-2/paths-303/pathep-[eth1/7]", "pod-2")]

    assert reconstruct_full_path("ETH1/7", attachments, "pod-1") == "pod-2/paths-303/pathep-[eth1/7]"


def test_reconstruct_vpc_infers_pod_from_node_pair():
    attachments = [_attachment("10", "427-428-VPC-9-9-PG",
                               "pod-3/protpaths-427-428/pathep-[427-428-VPC-9-9-PG]", "pod-3")]

    full_path = reconstruct_full_path("427-428-VPC-1-2-PG", attachments, "pod-1")

    assert full_path == "pod-3/protpaths-427-428/pathep-[427-428-VPC-1-2-PG]"


def test_reconstruct_vpc_falls_back_to_default_pod():
    full_path = reconstruct_full_path("427-428-VPC-1-2-PG", [], "pod-1")

    assert full_path == "pod-1/protpaths-427-428/pathep-[427-428-VPC-1-2-PG]"


def test_reconstruct_single_homed_from_path_prefix():
    attachments = [_attachment("10", "eth1/1", "pod-4/paths-101/pathep-[eth1/1]", "pod-4")]

    assert reconstruct_full_path("101-eth1-2", attachments, "pod-1") == "pod-4/paths-101/pathep-[101-eth1-2]"


def test_reconstruct_single_homed_from_node_hint():
    full_path = reconstruct_full_path("eth1/5", [], "pod-1", node_hint="303")

    assert full_path == "pod-1/paths-303/pathep-[eth1/5]"


def test_reconstruct_ignores_vpc_pairs_for_single_node_pod():
    attachments = [_attachment("10", "303-304-VPC-1-1-PG",
                               "pod-5/protpaths-303-304/pathep-[303-304-VPC-1-1-PG]", "pod-5")]

    assert reconstruct_full_path("eth1/5", attachments, "pod-1", node_hint="303") == \
        "pod-1/paths-303/pathep-[eth1/5]"


def test_reconstruct_unknown_shape_uses_placeholder():
    assert reconstruct_full_path("po12", [], "pod-1") == "pod-1/paths-XXX/pathep-[po12]"


# -------------------------------------------------------
# CSV export
# -------------------------------------------------------

def test_single_path_scenario_without_vlan_attachments():
    endpoint = parse_endpoint_output("303  eth1/5  learned  vlan-713")
    results = validate_vlan_allowances(endpoint, [])

    csv_text = generate_csv("713", "WEB", results, [], endpoint)

    assert csv_text.splitlines() == [
        "VLAN,EPG,PATH",
        "713,epg-WEB,pod-1/paths-303/pathep-[eth1/5]",
    ]


def test_generate_csv_skips_allowed_paths(endpoint_output, moquery_output, epg_name):
    endpoint = parse_endpoint_output(endpoint_output)
    attachments = parse_moquery_output(moquery_output)
    results = validate_vlan_allowances(endpoint, attachments)

    csv_text = generate_csv("623", epg_name, results, attachments, endpoint)

    assert csv_text.splitlines() == [
        CSV_HEADER,
        "623,EPG-VLAN623-10.204.85.128-27,pod-2/paths-303/pathep-[eth1/5]",
    ]


def test_single_and_bulk_export_agree(endpoint_output, moquery_output, epg_name):
    attachments = parse_moquery_output(moquery_output)
    [outcome] = validate_entries([ValidationEntry(endpoint_output, epg_name)], attachments)

    single = generate_csv(outcome.vlan, epg_name, outcome.results, attachments, outcome.endpoint)
    bulk = export_csv([outcome], attachments)

    assert single == bulk


def test_export_csv_row_count_matches_denied_paths(moquery_output):
    attachments = parse_moquery_output(moquery_output)
    entries = [
        ValidationEntry("303  eth1/5  vlan-623\n304  eth1/6  vlan-623", "EPG-VLAN623-x"),
        ValidationEntry("425  vpc 425-426-VPC-31-32-PG  vlan-623", "EPG-VLAN623-x"),
        ValidationEntry("101  eth1/9  vlan-700", "APP-VLAN700"),
        ValidationEntry("garbage", "EPG-VLAN1"),
    ]
    outcome = validate_entries(entries, attachments)

    lines = export_csv(outcome, attachments).splitlines()

    assert lines[0] == "VLAN,EPG,PATH"
    assert len(lines) - 1 == sum(len(o.denied) for o in outcome) == 3
    assert "700,epg-APP-VLAN700,pod-2/paths-101/pathep-[eth1/9]" in lines


def test_export_csv_without_denied_paths_raises(moquery_output):
    attachments = parse_moquery_output(moquery_output)
    outcome = validate_entries(
        [ValidationEntry("425  vpc 425-426-VPC-31-32-PG  vlan-623", "EPG-VLAN623-x")], attachments
    )

    with pytest.raises(NoValidationIssuesError):
        export_csv(outcome, attachments)


def test_export_csv_uses_configured_fallback_pod():
    outcome = validate_entries([ValidationEntry("303  eth1/5  vlan-713", "WEB")], [])

    lines = export_csv(outcome, [], fallback_pod="pod-7").splitlines()

    assert lines[1] == "713,epg-WEB,pod-7/paths-303/pathep-[eth1/5]"


def test_csv_filename():
    assert csv_filename(date(2024, 5, 1)) == "vlan-validation-2024-05-01.csv"


def test_denied_helper_matches_status():
    result = _denied("eth1/5")

    assert result.status is PathStatus.NOT_ALLOWED
    assert str(result) == "eth1/5: not_allowed"


def test_reconstruct_lowercase_vpc_name_stays_vpc():
    full_path = reconstruct_full_path("425-426-vpc-31-32-pg", [], "pod-1")

    assert full_path == "pod-1/protpaths-425-426/pathep-[425-426-vpc-31-32-pg]"


def test_lowercase_vpc_endpoint_exports_protpaths():
    endpoint = parse_endpoint_output("425  vpc 425-426-vpc-31-32-pg  vlan-623")
    results = validate_vlan_allowances(endpoint, [])

    lines = generate_csv("623", "WEB", results, [], endpoint).splitlines()

    assert lines[1] == "623,epg-WEB,pod-1/protpaths-425-426/pathep-[425-426-vpc-31-32-pg]"
