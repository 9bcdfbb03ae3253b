#!/usr/bin/env python3
# tests/test_crs_mapping.py
"""
Tests for CRS resource-element mapping (TS 36.211 Sec. 6.10.1.2).

Run with: pytest tests/test_crs_mapping.py -v
"""
import dataclasses
import itertools
import threading
import warnings

import numpy as np
import pytest

import lte_crs.mapping as mapping_mod
from lte_crs.crs_cfg import CrsConfigError, CrsMappingError, N_MAX_DL_RB
from lte_crs.mapping import (
    MappingInfo,
    crs_grid_mask,
    crs_port_grid,
    map_cell_rs,
    map_radio_frame,
    map_subframe,
    records_to_array,
)

pytestmark = pytest.mark.filterwarnings("ignore:n_rb=.*below the smallest")

CP_MODES = ["normal", "extended"]
PORTS = [0, 1, 2, 3]


def _at_symbol(records, l):
    return [r for r in records if r.ofdm_symbol == l]


# ============================================================================
# REFERENCE SCENARIOS
# ============================================================================

class TestReferenceScenario:
    """Normal CP, 6 RBs, cell 0, 4 ports (TS 36.211 Figure 6.10.1.2-1)."""

    def test_port0_symbol0(self):
        recs = _at_symbol(map_cell_rs("normal", 6, 0, 0, 4, 0), 0)
        assert [r.subcarrier for r in recs] == [6 * m for m in range(12)]
        assert [r.seq_index for r in recs] == [m + 104 for m in range(12)]
        assert all(r.slot_index == 0 for r in recs)

    def test_port0_symbol4(self):
        recs = _at_symbol(map_cell_rs("normal", 6, 0, 0, 4, 0), 4)
        assert [r.subcarrier for r in recs] == [6 * m + 3 for m in range(12)]

    def test_generation_order(self):
        recs = map_cell_rs("normal", 6, 0, 0, 4, 0)
        assert recs[:4] == [
            MappingInfo(0, 0, 0, 104),
            MappingInfo(4, 3, 0, 104),
            MappingInfo(0, 6, 0, 105),
            MappingInfo(4, 9, 0, 105),
        ]

    def test_port1_is_complement_of_port0(self):
        p0 = map_cell_rs("normal", 6, 0, 0, 4, 0)
        p1 = map_cell_rs("normal", 6, 0, 0, 4, 1)
        assert [r.subcarrier for r in _at_symbol(p1, 0)] == [6 * m + 3 for m in range(12)]
        assert [r.subcarrier for r in _at_symbol(p1, 4)] == [6 * m for m in range(12)]
        assert not ({(r.ofdm_symbol, r.subcarrier) for r in p0}
                    & {(r.ofdm_symbol, r.subcarrier) for r in p1})

    def test_cell_shift(self):
        base = _at_symbol(map_cell_rs("normal", 6, 0, 0, 4, 0), 0)
        shifted = _at_symbol(map_cell_rs("normal", 6, 0, 3, 4, 0), 0)
        for a, b in zip(base, shifted):
            assert b.subcarrier == 6 * (a.subcarrier // 6) + (a.subcarrier % 6 + 3) % 6
            assert b.seq_index == a.seq_index

    @pytest.mark.parametrize("port", [2, 3])
    def test_port23_slot_parity(self, port):
        even = map_cell_rs("normal", 6, 0, 0, 4, port)
        odd = map_cell_rs("normal", 6, 1, 0, 4, port)
        assert all(r.ofdm_symbol == 1 for r in even + odd)
        for a, b in zip(even, odd):
            assert (b.subcarrier - a.subcarrier) % 6 == 3
            assert b.slot_index == 1

    def test_extended_cp_symbols(self):
        recs = map_cell_rs("extended", 1, 2, 2, 4, 0)
        assert recs == [
            MappingInfo(0, 2, 2, 109), MappingInfo(3, 5, 2, 109),
            MappingInfo(0, 8, 2, 110), MappingInfo(3, 11, 2, 110),
        ]

    def test_full_bandwidth_seq_index_starts_at_zero(self):
        recs = map_cell_rs("normal", N_MAX_DL_RB, 5, 11, 1, 0)
        assert recs[0].seq_index == 0
        assert recs[-1].seq_index == 2 * N_MAX_DL_RB - 1


# ============================================================================
# PROPERTIES
# ============================================================================

class TestProperties:

    @pytest.mark.parametrize("cp_mode,port,ns", list(itertools.product(CP_MODES, PORTS, [0, 1, 10, 19])))
    def test_cardinality_uniqueness_bounds(self, cp_mode, port, ns):
        n_rb = 25
        recs = map_cell_rs(cp_mode, n_rb, ns, 137, 4, port)
        n_sym = 7 if cp_mode == "normal" else 6
        allowed = {0, n_sym - 3} if port < 2 else {1}

        assert len(recs) == (4 if port < 2 else 2) * n_rb
        assert len({(r.ofdm_symbol, r.subcarrier) for r in recs}) == len(recs)
        assert all(0 <= r.subcarrier <= 12 * n_rb - 1 for r in recs)
        assert {r.ofdm_symbol for r in recs} == allowed
        assert all(r.slot_index == ns for r in recs)

    @pytest.mark.parametrize("port", PORTS)
    @pytest.mark.parametrize("cell_id", range(6))
    def test_shift_periodicity(self, port, cell_id):
        ref = map_cell_rs("normal", 6, 3, cell_id, 4, port)
        for other in range(cell_id + 6, 504, 6 * 17):
            recs = map_cell_rs("normal", 6, 3, other, 4, port)
            assert [r.subcarrier for r in recs] == [r.subcarrier for r in ref]

    def test_determinism(self):
        a = map_cell_rs("extended", 50, 7, 222, 4, 3)
        b = map_cell_rs("extended", 50, 7, 222, 4, 3)
        assert a == b
        assert a is not b

    def test_fresh_result_per_call(self):
        a = map_cell_rs("normal", 6, 0, 0, 1, 0)
        a.clear()
        assert len(map_cell_rs("normal", 6, 0, 0, 1, 0)) == 24

    def test_record_is_immutable(self):
        rec = map_cell_rs("normal", 6, 0, 0, 1, 0)[0]
        with pytest.raises(dataclasses.FrozenInstanceError):
            rec.subcarrier = 1

    def test_six_subcarrier_spacing_per_symbol(self):
        recs = map_cell_rs("normal", 10, 0, 5, 2, 0)
        for l in (0, 4):
            ks = np.array([r.subcarrier for r in _at_symbol(recs, l)])
            assert np.all(np.diff(ks) == 6)

    def test_concurrent_calls(self):
        expected = {p: map_cell_rs("normal", 100, 4, 42, 4, p) for p in PORTS}
        results = {}

        def worker(p):
            results[p] = map_cell_rs("normal", 100, 4, 42, 4, p)

        threads = [threading.Thread(target=worker, args=(p,)) for p in PORTS]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == expected

    @pytest.mark.slow
    @pytest.mark.parametrize("cp_mode", CP_MODES)
    def test_all_bandwidths(self, cp_mode):
        for n_rb in range(1, N_MAX_DL_RB + 1):
            for port in PORTS:
                recs = map_cell_rs(cp_mode, n_rb, n_rb % 20, n_rb * 4, 4, port)
                assert len(recs) == (4 if port < 2 else 2) * n_rb
                assert len({(r.ofdm_symbol, r.subcarrier) for r in recs}) == len(recs)
                assert max(r.subcarrier for r in recs) <= 12 * n_rb - 1
                assert min(r.seq_index for r in recs) == N_MAX_DL_RB - n_rb


# ============================================================================
# REJECTION
# ============================================================================

class TestRejection:

    @pytest.mark.parametrize("kwargs", [
        dict(n_rb=111), dict(n_rb=0), dict(n_rb=-1),
        dict(n_ports=0), dict(n_ports=5),
        dict(port=4, n_ports=4), dict(port=2, n_ports=2), dict(port=-1),
        dict(cell_id=504), dict(cell_id=-1),
        dict(ns=20), dict(ns=-1),
        dict(cp_mode="long"),
        dict(n_rb=6.5), dict(ns=None), dict(port=True),
    ])
    def test_invalid_configuration(self, kwargs):
        args = dict(cp_mode="normal", n_rb=6, ns=0, cell_id=0, n_ports=4, port=0)
        args.update(kwargs)
        with pytest.raises(CrsConfigError):
            map_cell_rs(**args)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            map_cell_rs("normal", 111, 0, 0, 4, 0)

    @pytest.mark.parametrize("call", [
        lambda: map_cell_rs("normal", 1, 0, 0, 4, 7),
        lambda: map_cell_rs("normal", 1, 20, 0, 4, 0),
        lambda: map_subframe("normal", 1, 1, 0, 1),
    ])
    def test_rejected_small_bandwidth_does_not_warn(self, call):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            with pytest.raises(CrsConfigError):
                call()
        assert caught == []

    def test_small_bandwidth_warns(self):
        with pytest.warns(UserWarning, match="n_rb=1"):
            recs = map_cell_rs("normal", 1, 0, 0, 1, 0)
        assert len(recs) == 4

    def test_duplicate_res_raise_mapping_error(self, monkeypatch):
        monkeypatch.setattr(mapping_mod, "crs_symbols", lambda cp_mode, port: (0, 0))
        with pytest.raises(CrsMappingError):
            map_cell_rs("normal", 6, 0, 0, 1, 0)


# ============================================================================
# SUBFRAME / FRAME HELPERS
# ============================================================================

class TestSubframe:

    def test_keys_port_major(self):
        m = map_subframe("normal", 6, 0, 0, 4)
        assert list(m) == [(0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1), (3, 0), (3, 1)]

    def test_matches_single_calls(self):
        m = map_subframe("extended", 15, 12, 3, 2)
        for (port, ns), recs in m.items():
            assert recs == map_cell_rs("extended", 15, ns, 3, 2, port)

    @pytest.mark.parametrize("start_slot", [1, 19, 20, 22, -2])
    def test_bad_start_slot(self, start_slot):
        with pytest.raises(CrsConfigError):
            map_subframe("normal", 6, start_slot, 0, 1)

    @pytest.mark.parametrize("n_ports", [0, 6])
    def test_bad_port_count(self, n_ports):
        with pytest.raises(CrsConfigError):
            map_subframe("normal", 6, 0, 0, n_ports)

    def test_radio_frame(self):
        m = map_radio_frame("normal", 6, 1, 2)
        assert len(m) == 2 * 20
        assert {ns for _, ns in m} == set(range(20))
        assert m[(1, 13)] == map_cell_rs("normal", 6, 13, 1, 2, 1)


class TestArraysAndGrids:

    def test_records_to_array(self):
        arr = records_to_array(map_cell_rs("normal", 6, 0, 0, 1, 0))
        assert arr.shape == (24, 4)
        assert arr.dtype == np.int64
        np.testing.assert_array_equal(arr[0], [0, 0, 0, 104])
        np.testing.assert_array_equal(arr[1], [4, 3, 0, 104])

    def test_records_to_array_empty(self):
        assert records_to_array([]).shape == (0, 4)

    def test_grid_mask(self):
        mask = crs_grid_mask(map_cell_rs("normal", 6, 0, 0, 1, 0), "normal", 6)
        assert mask.shape == (7, 72)
        assert mask.sum() == 24
        assert mask[0, 0] and mask[4, 3] and not mask[1, 0]
        # every RB carries two CRS per symbol
        assert mask[0].reshape(6, 12).sum(axis=1).tolist() == [2] * 6

    def test_grid_mask_size_mismatch(self):
        with pytest.raises(CrsConfigError):
            crs_grid_mask(map_cell_rs("normal", 6, 0, 0, 1, 0), "extended", 1)

    def test_port_grid_all_ports(self):
        m = map_subframe("normal", 6, 0, 0, 4)
        grid = crs_port_grid(m, "normal", 6, 1)
        assert grid.shape == (7, 72)
        counts = {p: int((grid == p).sum()) for p in PORTS}
        assert counts == {0: 24, 1: 24, 2: 12, 3: 12}
        assert grid[1, 3] == 2 and grid[1, 0] == 3   # odd slot: port 2 v=3, port 3 v=6

    def test_port_grid_collision(self):
        recs = map_cell_rs("normal", 6, 0, 0, 2, 0)
        with pytest.raises(CrsMappingError):
            crs_port_grid({(0, 0): recs, (1, 0): recs}, "normal", 6, 0)
