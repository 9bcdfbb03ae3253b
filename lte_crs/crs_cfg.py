# lte_crs/crs_cfg.py
"""
LTE downlink constants and YAML config handling for CRS mapping
(3GPP TS 36.211 Sec. 6.10.1.2).

Config layout (YAML):
    crs:
      cp_mode: normal      # normal | extended
      n_rb: 6              # 1..110
      cell_id: 0           # 0..503
      n_ports: 4           # 1..4
      start_slot: 0        # even, first slot of a subframe
    io:
      out_json: artifacts/crs_mapping.json
      plot: false
      out_plot: artifacts/crs_grid.png
      show_plot: false
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, Literal, Tuple

import numpy as np
import yaml

CpMode = Literal["normal", "extended"]

N_MAX_DL_RB = 110            # max DL RBs, also the length basis of the CRS sequence
N_MIN_DL_RB = 6              # smallest LTE channel bandwidth (1.4 MHz)
N_SC_PER_RB = 12
SLOTS_PER_SUBFRAME = 2
SLOTS_PER_RADIO_FRAME = 20
SUBFRAMES_PER_RADIO_FRAME = SLOTS_PER_RADIO_FRAME // SLOTS_PER_SUBFRAME
MAX_CRS_PORTS = 4
N_CELL_ID = 504              # physical cell identities 0..503

_SYMBOLS_PER_SLOT = {"normal": 7, "extended": 6}

# v for ports 0/1, indexed by (l' != 0)
_V_PORT01 = {0: (0, 3), 1: (3, 0)}
# v for ports 2/3 before the slot-parity term 3*(ns mod 2)
_V_PORT23 = {2: 0, 3: 3}


class CrsConfigError(ValueError):
    """Input outside its valid range; raised before any RE is generated."""


class CrsMappingError(RuntimeError):
    """Mapping produced overlapping REs."""


# ----------------------------- field coercion ----------------------------- #

def _is_placeholder(x) -> bool:
    return isinstance(x, str) and ("${" in x or "}" in x)

def as_int(name: str, v) -> int:
    if v is None:
        raise CrsConfigError(f"Missing required integer field: {name}")
    if _is_placeholder(v):
        raise CrsConfigError(f"Field '{name}' uses an unresolved template value: {v!r}")
    if isinstance(v, (bool, np.bool_)):
        raise CrsConfigError(f"Field '{name}' must be an integer (got {v!r})")
    if isinstance(v, (int, np.integer)):
        return int(v)
    try:
        f = float(v)
    except (TypeError, ValueError):
        raise CrsConfigError(f"Field '{name}' must be an integer (got {v!r})")
    if not f.is_integer():
        raise CrsConfigError(f"Field '{name}' must be an integer (got {v!r})")
    return int(f)

def as_bool(name: str, v) -> bool:
    if isinstance(v, (bool, np.bool_)):
        return bool(v)
    if isinstance(v, str) and v.strip().lower() in ("true", "false"):
        return v.strip().lower() == "true"
    raise CrsConfigError(f"Field '{name}' must be true or false (got {v!r})")

def as_cp_mode(v, name: str = "cp_mode") -> CpMode:
    if v is None:
        raise CrsConfigError(f"Missing required field: {name}")
    mode = str(v).strip().lower()
    if mode not in _SYMBOLS_PER_SLOT:
        raise CrsConfigError(f"Field '{name}' must be 'normal' or 'extended' (got {v!r})")
    return mode  # type: ignore[return-value]


# ----------------------------- per-port rules ----------------------------- #

def ofdm_symbols_per_slot(cp_mode: CpMode) -> int:
    return _SYMBOLS_PER_SLOT[as_cp_mode(cp_mode)]

def crs_symbols(cp_mode: CpMode, port: int) -> Tuple[int, ...]:
    """OFDM symbols l' within a slot carrying CRS for `port`."""
    if port in (0, 1):
        return (0, ofdm_symbols_per_slot(cp_mode) - 3)
    if port in (2, 3):
        return (1,)
    raise CrsConfigError(f"Antenna port {port} is not a CRS port (0..{MAX_CRS_PORTS - 1})")

def crs_v(port: int, l: int, ns: int) -> int:
    """Port/symbol dependent frequency offset v (before the cell shift)."""
    if port in _V_PORT01:
        return _V_PORT01[port][int(l != 0)]
    if port in _V_PORT23:
        return _V_PORT23[port] + 3 * (ns % 2)
    raise CrsConfigError(f"Antenna port {port} is not a CRS port (0..{MAX_CRS_PORTS - 1})")

def crs_v_shift(cell_id: int) -> int:
    return cell_id % 6


# ----------------------------- YAML config ----------------------------- #

def crs_defaults(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Resolve the `crs:` block into map_subframe() keyword arguments."""
    crs = dict(cfg.get("crs", {}) or {})
    return {
        "cp_mode": as_cp_mode(crs.get("cp_mode", "normal"), "crs.cp_mode"),
        "n_rb": as_int("crs.n_rb", crs.get("n_rb", N_MIN_DL_RB)),
        "start_slot": as_int("crs.start_slot", crs.get("start_slot", 0)),
        "cell_id": as_int("crs.cell_id", crs.get("cell_id", 0)),
        "n_ports": as_int("crs.n_ports", crs.get("n_ports", 1)),
    }

def io_defaults(cfg: Dict[str, Any]) -> Dict[str, Any]:
    io = dict(cfg.get("io", {}) or {})
    return {
        "out_json": io.get("out_json", None),
        "plot": as_bool("io.plot", io.get("plot", False)),
        "out_plot": io.get("out_plot", "artifacts/crs_grid.png"),
        "show_plot": as_bool("io.show_plot", io.get("show_plot", False)),
    }

def load_crs_cfg(path: str | Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise CrsConfigError(f"Config {path} is not valid YAML: {e}") from e
    if not isinstance(cfg, dict):
        raise CrsConfigError(f"Config {path} must be a mapping (got {type(cfg).__name__})")
    return cfg
