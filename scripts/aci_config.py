"""
Configuration constants for the ACI VLAN path validator.
"""

# -------------------------------------------------------
# Path Reconstruction
# -------------------------------------------------------

# Pod used when no attachment reveals the pod of a denied path
DEFAULT_POD = "pod-1"

# Node id written for paths whose node cannot be inferred
UNKNOWN_NODE_PLACEHOLDER = "XXX"


# -------------------------------------------------------
# Validation Policy
# -------------------------------------------------------

# Paths with no matching attachment for the VLAN are denied
UNMATCHED_POLICY = "deny"


# -------------------------------------------------------
# CSV Export
# -------------------------------------------------------

CSV_HEADER = "VLAN,EPG,PATH"
CSV_FILENAME_TEMPLATE = "vlan-validation-{date}.csv"
EPG_PREFIX = "epg-"


# -------------------------------------------------------
# Environment
# -------------------------------------------------------

ENV_DEFAULT_POD = "ACI_VLANCHECK_DEFAULT_POD"
ENV_LOG_LEVEL = "ACI_VLANCHECK_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
