# lte_crs/mapping.py
"""
Cell-specific reference signal (CRS) resource-element mapping.

For one antenna port p in slot ns:
    l' in {0, N_symb - 3}  (p = 0, 1)      l' = 1  (p = 2, 3)
    k  = 6*m + (v + v_shift) mod 6,  m = 0 .. 2*N_RB - 1
    m' = m + N_max_RB - N_RB
v follows crs_v(), v_shift = N_cell_ID mod 6.
The CRS values themselves (pseudo-random sequence r_{l,ns}(m')) are not
generated here; each record carries (ns, m') for that generator.
"""
from __future__ import annotations
import warnings
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .crs_cfg import (
    CpMode,
    CrsConfigError,
    CrsMappingError,
    MAX_CRS_PORTS,
    N_CELL_ID,
    N_MAX_DL_RB,
    N_MIN_DL_RB,
    N_SC_PER_RB,
    SLOTS_PER_RADIO_FRAME,
    SLOTS_PER_SUBFRAME,
    as_cp_mode,
    as_int,
    crs_symbols,
    crs_v,
    crs_v_shift,
    ofdm_symbols_per_slot,
)

PortSlot = Tuple[int, int]


@dataclass(frozen=True)
class MappingInfo:
    """One CRS resource element plus the indices of its sequence value."""
    ofdm_symbol: int   # l, within the slot
    subcarrier: int    # k, across the mapped bandwidth
    slot_index: int    # ns, within the radio frame
    seq_index: int     # m'


# ----------------------------- validation ----------------------------- #

def _check_cell(cp_mode, n_rb, cell_id, n_ports) -> Tuple[CpMode, int, int, int]:
    cp_mode = as_cp_mode(cp_mode)
    n_rb = as_int("n_rb", n_rb)
    cell_id = as_int("cell_id", cell_id)
    n_ports = as_int("n_ports", n_ports)
    if not (1 <= n_rb <= N_MAX_DL_RB):
        raise CrsConfigError(f"n_rb={n_rb} outside [1, {N_MAX_DL_RB}]")
    if not (0 <= cell_id < N_CELL_ID):
        raise CrsConfigError(f"cell_id={cell_id} outside [0, {N_CELL_ID - 1}]")
    if not (1 <= n_ports <= MAX_CRS_PORTS):
        raise CrsConfigError(f"n_ports={n_ports} outside [1, {MAX_CRS_PORTS}]")
    return cp_mode, n_rb, cell_id, n_ports

def _warn_small_bandwidth(n_rb: int) -> None:
    # only once every input has been accepted
    if n_rb < N_MIN_DL_RB:
        warnings.warn(f"n_rb={n_rb} is below the smallest LTE channel bandwidth ({N_MIN_DL_RB} RBs)")

def _check_slot(ns) -> int:
    ns = as_int("ns", ns)
    if not (0 <= ns < SLOTS_PER_RADIO_FRAME):
        raise CrsConfigError(f"ns={ns} outside radio frame [0, {SLOTS_PER_RADIO_FRAME - 1}]")
    return ns

def _check_port(port, n_ports: int) -> int:
    port = as_int("port", port)
    if port < 0 or port >= MAX_CRS_PORTS:
        raise CrsConfigError(f"Antenna port {port} is not a CRS port (0..{MAX_CRS_PORTS - 1})")
    if port >= n_ports:
        raise CrsConfigError(f"Antenna port {port} not configured (n_ports={n_ports})")
    return port


# ----------------------------- core mapping ----------------------------- #

def _map_port(cp_mode: CpMode, n_rb: int, ns: int, cell_id: int, port: int) -> List[MappingInfo]:
    symbols = crs_symbols(cp_mode, port)
    v_shift = crs_v_shift(cell_id)
    m_dash_offset = N_MAX_DL_RB - n_rb

    out: List[MappingInfo] = []
    for m in range(2 * n_rb):
        for l in symbols:
            k = 6 * m + (crs_v(port, l, ns) + v_shift) % 6
            out.append(MappingInfo(l, k, ns, m + m_dash_offset))

    if len({(r.ofdm_symbol, r.subcarrier) for r in out}) != len(out):
        raise CrsMappingError(f"Duplicate CRS REs for port={port}, ns={ns}")
    return out

def map_cell_rs(cp_mode: CpMode,
                n_rb: int,
                ns: int,
                cell_id: int,
                n_ports: int,
                port: int) -> List[MappingInfo]:
    """
    REs carrying CRS for antenna `port` in slot `ns`.

    Returns a new list ordered by m (frequency) then l' (time):
    4*n_rb records for ports 0/1, 2*n_rb for ports 2/3.
    Raises CrsConfigError on any out-of-range input.
    """
    cp_mode, n_rb, cell_id, n_ports = _check_cell(cp_mode, n_rb, cell_id, n_ports)
    ns = _check_slot(ns)
    port = _check_port(port, n_ports)
    _warn_small_bandwidth(n_rb)
    return _map_port(cp_mode, n_rb, ns, cell_id, port)


# ----------------------------- batch helpers ----------------------------- #

def map_subframe(cp_mode: CpMode,
                 n_rb: int,
                 start_slot: int,
                 cell_id: int,
                 n_ports: int) -> Dict[PortSlot, List[MappingInfo]]:
    """
    Map every configured port over both slots of the subframe starting at
    `start_slot` (must be even). Keys are (port, ns), port-major.
    """
    cp_mode, n_rb, cell_id, n_ports = _check_cell(cp_mode, n_rb, cell_id, n_ports)
    start_slot = as_int("start_slot", start_slot)
    last_start = SLOTS_PER_RADIO_FRAME - SLOTS_PER_SUBFRAME
    if not (0 <= start_slot <= last_start):
        raise CrsConfigError(f"start_slot={start_slot} outside [0, {last_start}]")
    if start_slot % SLOTS_PER_SUBFRAME != 0:
        raise CrsConfigError(f"start_slot={start_slot} must be even (first slot of a subframe)")
    _warn_small_bandwidth(n_rb)

    out: Dict[PortSlot, List[MappingInfo]] = {}
    for port in range(n_ports):
        for ns in range(start_slot, start_slot + SLOTS_PER_SUBFRAME):
            out[(port, ns)] = _map_port(cp_mode, n_rb, ns, cell_id, port)
    return out

def map_radio_frame(cp_mode: CpMode,
                    n_rb: int,
                    cell_id: int,
                    n_ports: int) -> Dict[PortSlot, List[MappingInfo]]:
    """All 20 slots of a radio frame; keys (port, ns) ordered by subframe, then port, then slot."""
    cp_mode, n_rb, cell_id, n_ports = _check_cell(cp_mode, n_rb, cell_id, n_ports)
    _warn_small_bandwidth(n_rb)
    out: Dict[PortSlot, List[MappingInfo]] = {}
    for start in range(0, SLOTS_PER_RADIO_FRAME, SLOTS_PER_SUBFRAME):
        for port in range(n_ports):
            for ns in range(start, start + SLOTS_PER_SUBFRAME):
                out[(port, ns)] = _map_port(cp_mode, n_rb, ns, cell_id, port)
    return out


# ----------------------------- array / grid views ----------------------------- #

def records_to_array(records: Sequence[MappingInfo]) -> np.ndarray:
    """[N, 4] int array with columns (l, k, ns, m')."""
    arr = np.array([(r.ofdm_symbol, r.subcarrier, r.slot_index, r.seq_index) for r in records],
                   dtype=np.int64)
    return arr.reshape(-1, 4)

def crs_grid_mask(records: Sequence[MappingInfo], cp_mode: CpMode, n_rb: int) -> np.ndarray:
    """Boolean [N_symb, 12*n_rb] slot grid, True where CRS is mapped."""
    S = ofdm_symbols_per_slot(cp_mode)
    K = N_SC_PER_RB * as_int("n_rb", n_rb)
    mask = np.zeros((S, K), dtype=bool)
    arr = records_to_array(records)
    if arr.size == 0:
        return mask
    if arr[:, 0].max() >= S or arr[:, 1].max() >= K:
        raise CrsConfigError(f"Records do not fit a {S}x{K} slot grid")
    mask[arr[:, 0], arr[:, 1]] = True
    return mask

def crs_port_grid(mapping: Dict[PortSlot, List[MappingInfo]],
                  cp_mode: CpMode,
                  n_rb: int,
                  ns: int) -> np.ndarray:
    """
    Int [N_symb, 12*n_rb] grid for slot `ns` holding the antenna port of
    each CRS RE, -1 elsewhere. Overlapping ports raise CrsMappingError.
    """
    grid = np.full((ofdm_symbols_per_slot(cp_mode), N_SC_PER_RB * as_int("n_rb", n_rb)), -1,
                   dtype=np.int8)
    for (port, slot), records in mapping.items():
        if slot != ns:
            continue
        mask = crs_grid_mask(records, cp_mode, n_rb)
        if np.any(grid[mask] != -1):
            raise CrsMappingError(f"Port {port} overlaps another port in slot {ns}")
        grid[mask] = port
    return grid
