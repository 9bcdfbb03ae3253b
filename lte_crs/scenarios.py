# lte_crs/scenarios.py
"""
Fixed demo vectors and text/JSON rendering of subframe mappings.

Scenario 0 reproduces TS 36.211 Figure 6.10.1.2-1 (normal CP, one subframe).
Scenarios 3-5 are deliberately invalid and must be rejected.
"""
from __future__ import annotations
import copy
from typing import Dict, Any, List

from .crs_cfg import CrsConfigError, crs_defaults
from .mapping import MappingInfo, PortSlot, map_subframe

SCENARIOS: Dict[str, Dict[str, Any]] = {
    "0": {"cp_mode": "normal",   "start_slot": 0,  "n_rb": 6,   "cell_id": 0, "n_ports": 4},
    "1": {"cp_mode": "extended", "start_slot": 2,  "n_rb": 1,   "cell_id": 2, "n_ports": 4},
    "2": {"cp_mode": "normal",   "start_slot": 12, "n_rb": 15,  "cell_id": 3, "n_ports": 2},
    "3": {"cp_mode": "normal",   "start_slot": 22, "n_rb": 1,   "cell_id": 0, "n_ports": 1},  # past slot 19
    "4": {"cp_mode": "normal",   "start_slot": 0,  "n_rb": 125, "cell_id": 0, "n_ports": 1},  # > 110 RBs
    "5": {"cp_mode": "normal",   "start_slot": 0,  "n_rb": 1,   "cell_id": 0, "n_ports": 6},  # > 4 ports
}


def scenario_cfg(key: str) -> Dict[str, Any]:
    """Config dict ({'crs': {...}}) for a demo scenario."""
    key = str(key)
    if key not in SCENARIOS:
        raise CrsConfigError(f"Invalid test number {key!r}; available: {sorted(SCENARIOS)}")
    return {"crs": copy.deepcopy(SCENARIOS[key])}

def run_scenario(cfg: Dict[str, Any] | str) -> Dict[PortSlot, List[MappingInfo]]:
    if isinstance(cfg, (str, int)):
        cfg = scenario_cfg(str(cfg))
    return map_subframe(**crs_defaults(cfg))


def format_mapping(mapping: Dict[PortSlot, List[MappingInfo]],
                   *,
                   cp_mode: str,
                   n_rb: int,
                   cell_id: int,
                   n_ports: int,
                   **_ignored) -> str:
    lines = [f"CP {cp_mode}, n_rb={n_rb}, cell_id={cell_id}, n_ports={n_ports}"]
    for (port, ns), records in mapping.items():
        head = f"Port {port}, slot {ns} ({len(records)} REs)"
        lines += ["", head, "-" * len(head)]
        lines += [f"  l={r.ofdm_symbol} k={r.subcarrier} ns={r.slot_index} m'={r.seq_index}"
                  for r in records]
    return "\n".join(lines)

def mapping_to_json(mapping: Dict[PortSlot, List[MappingInfo]],
                    meta: Dict[str, Any] | None = None) -> Dict[str, Any]:
    """JSON-friendly dict; each RE is [l, k, ns, m']."""
    return {
        "meta": dict(meta or {}),
        "slots": [
            {
                "port": int(port),
                "ns": int(ns),
                "re": [[r.ofdm_symbol, r.subcarrier, r.slot_index, r.seq_index] for r in records],
            }
            for (port, ns), records in mapping.items()
        ],
    }
