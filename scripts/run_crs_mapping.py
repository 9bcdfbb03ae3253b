# scripts/run_crs_mapping.py
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))
from lte_crs.cli import main

if __name__ == "__main__":
    sys.exit(main())
