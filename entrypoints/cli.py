"""CLI entrypoint for locktrace."""
from __future__ import annotations

import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from locktrace.adapters.input.cli.cli_adapter import main


if __name__ == '__main__':
  main()
