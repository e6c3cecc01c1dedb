"""
run_collage.py — CLI Entry Point

Forwards execution to the CLI defined in `src/dream_collage/cli.py` so
the tool can be run from a checkout without installing the package.

Usage:
    python run_collage.py --images a.png b.png c.png d.png [options]

For help on available options, run:
    python run_collage.py --help
"""
import sys
# Source code in src/ subdirectory
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

import dream_collage.cli as dc_cli

if __name__ == "__main__":
    raise SystemExit(dc_cli.main())
