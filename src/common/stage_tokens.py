from __future__ import annotations

import hashlib

# Allowed stage postfix tokens for HazardCore naming.
STAGE_TOKENS = {
    "if",
    "id",
    "ex",
    "mem",
    "wb",
    "ctl",
    "trg",
    "top",
}

INTERFACE_PREFIXES = {
    "if_to_id_stage",
    "id_to_ex_stage",
    "ex_to_mem_stage",
    "mem_to_wb_stage",
}

# Fixed stage-id order of the cycle trace; each id names one column group.
TRACE_STAGE_ID_ORDER = [
    "IF",
    "ID",
    "EX",
    "MEM",
    "WB",
    "CTL",
    "TRG",
]

# Cycle trace schema contract.
# Any change to TRACE_STAGE_ID_ORDER changes this ID and requires the
# trace writer and the text renderer to be refreshed in the same change.
TRACE_SCHEMA_VERSION = 1
_trace_stage_csv = ",".join(TRACE_STAGE_ID_ORDER)
_trace_stage_hash = hashlib.sha1(_trace_stage_csv.encode("utf-8")).hexdigest().upper()[:12]
TRACE_SCHEMA_ID = f"HC-TRACE{TRACE_SCHEMA_VERSION}-{_trace_stage_hash}"
TRACE_STAGE_ORDER_CSV = _trace_stage_csv
