"""lte_crs: LTE downlink cell-specific reference signal (CRS) RE mapping."""

from .crs_cfg import (
    CpMode,
    CrsConfigError,
    CrsMappingError,
    N_MAX_DL_RB,
    MAX_CRS_PORTS,
    SLOTS_PER_RADIO_FRAME,
    SLOTS_PER_SUBFRAME,
    crs_symbols,
    crs_v,
    crs_v_shift,
    ofdm_symbols_per_slot,
    load_crs_cfg,
    crs_defaults,
)
from .mapping import (
    MappingInfo,
    map_cell_rs,
    map_subframe,
    map_radio_frame,
    records_to_array,
    crs_grid_mask,
    crs_port_grid,
)
