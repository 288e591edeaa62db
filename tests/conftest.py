"""
Shared sample CLI output for the test suite.
"""
import pytest


ENDPOINT_OUTPUT = """
Node  Interface                  Encap     IP Address     MAC Address
----  -------------------------  --------  -------------  -----------------
425   vpc 425-426-VPC-31-32-PG   vlan-623  10.204.85.130  00:50:56:aa:bb:01
426   vpc 425-426-VPC-31-32-PG   vlan-623  10.204.85.130  00:50:56:aa:bb:01
303   eth1/5                     vlan-623  10.204.85.131  00:50:56:aa:bb:02
"""

MOQUERY_OUTPUT = """
dn : uni/tn-PROD/ap-APP/epg-EPG-VLAN623-10.204.85.128-27/rspathAtt-[topology/pod-2/protpaths-425-426/pathep-[425-426-VPC-31-32-PG]]
dn : uni/tn-PROD/ap-APP/epg-EPG-VLAN623-10.204.85.128-27/rspathAtt-[topology/pod-2/paths-301/pathep-[eth1/10]]
dn : uni/tn-PROD/ap-APP/epg-EPG-VLAN700-10.1.1.0-24/rspathAtt-[topology/pod-2/paths-303/pathep-[eth1/7]]
dn : uni/tn-PROD/ap-APP/epg-EPG-VLAN623-10.2?? corrupted line
dn : uni/tn-LAB/ap-APP/epg-EPG-VLAN900-lab/rspathAtt-[topology/pod-1/protpaths-3(X)-3(X)/pathep-[LAB-VPC-PG]]
"""

EPG_NAME = "EPG-VLAN623-10.204.85.128-27"


@pytest.fixture
def endpoint_output():
    return ENDPOINT_OUTPUT


@pytest.fixture
def moquery_output():
    return MOQUERY_OUTPUT


@pytest.fixture
def epg_name():
    return EPG_NAME
