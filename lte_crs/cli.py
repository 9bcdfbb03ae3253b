# lte_crs/cli.py
import argparse, json, sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .crs_cfg import CrsConfigError, CrsMappingError, crs_defaults, io_defaults, load_crs_cfg
from .mapping import crs_port_grid, map_subframe
from .scenarios import SCENARIOS, format_mapping, mapping_to_json, scenario_cfg


def _suffixed(path: str | Path, key: str) -> Path:
    p = Path(path)
    return p.with_name(f"{p.stem}_{key}{p.suffix}")

def _run_one(cfg: Dict[str, Any], args, tag: Optional[str] = None) -> int:
    label = f"scenario {tag}: " if tag is not None else ""
    try:
        params = crs_defaults(cfg)
        io = io_defaults(cfg)
        mapping = map_subframe(**params)
    except (CrsConfigError, CrsMappingError) as e:
        print(f"[error] {label}{e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(format_mapping(mapping, **params))

    out_json = args.out or io["out_json"]
    if out_json:
        out_json = _suffixed(out_json, tag) if tag is not None and args.scenario == "all" else Path(out_json)
        try:
            out_json.parent.mkdir(parents=True, exist_ok=True)
            with open(out_json, "w") as f:
                json.dump(mapping_to_json(mapping, meta=params), f, indent=2)
        except OSError as e:
            print(f"[error] {label}cannot write {out_json}: {e}", file=sys.stderr)
            return 1
        print("[info] CRS mapping saved to", out_json)

    if args.plot or io["plot"]:
        # matplotlib only when plotting
        from .plots import plot_crs_grid
        out_png = Path(args.plot_out or io["out_plot"])
        if tag is not None and args.scenario == "all":
            out_png = _suffixed(out_png, tag)
        ns = params["start_slot"]
        grid = crs_port_grid(mapping, params["cp_mode"], params["n_rb"], ns)
        title = f"CRS, cell {params['cell_id']}, slot {ns}, CP {params['cp_mode']}"
        try:
            plot_crs_grid(grid, title=title, save_path=out_png, show=io["show_plot"])
        except OSError as e:
            print(f"[error] {label}cannot write {out_png}: {e}", file=sys.stderr)
            return 1
        print("[info] CRS grid plot saved to", out_png)
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="LTE downlink CRS resource-element mapping for one subframe")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--scenario", help=f"demo scenario ({', '.join(sorted(SCENARIOS))}) or 'all'")
    src.add_argument("--cfg", help="YAML config with a crs: block (and optional io: block)")
    p.add_argument("--out", default=None, help="Output JSON file path")
    p.add_argument("--plot", action="store_true", help="Save a PNG of the first slot's CRS grid")
    p.add_argument("--plot-out", default=None, help="PNG path (default from io.out_plot)")
    p.add_argument("--quiet", action="store_true", help="Do not print the RE dump")
    args = p.parse_args(argv)

    if args.cfg:
        try:
            cfg = load_crs_cfg(args.cfg)
        except (OSError, CrsConfigError) as e:
            print(f"[error] {e}", file=sys.stderr)
            return 1
        return _run_one(cfg, args)

    if args.scenario == "all":
        failed = [key for key in sorted(SCENARIOS) if _run_one(scenario_cfg(key), args, tag=key) != 0]
        if failed:
            print(f"[info] {len(failed)}/{len(SCENARIOS)} scenarios rejected: {', '.join(failed)}")
        return 1 if failed else 0

    try:
        cfg = scenario_cfg(args.scenario)
    except CrsConfigError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    return _run_one(cfg, args, tag=args.scenario)

if __name__ == "__main__":
    sys.exit(main())
