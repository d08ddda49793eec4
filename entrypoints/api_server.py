"""API server entrypoint."""
from __future__ import annotations

import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import uvicorn

from locktrace.common.config import get_settings
from locktrace.common.container import create_api_adapter
from locktrace.common.log_config import configure_logging


def get_app():
  configure_logging(get_settings().log_level)
  return create_api_adapter().app


def main() -> None:
  uvicorn.run(get_app(), host='0.0.0.0', port=8000)


if __name__ == '__main__':
  main()
