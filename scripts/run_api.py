#!/usr/bin/env python
"""
Run the invoice API with uvicorn.

Usage:
    python scripts/run_api.py [--port 8000]
"""
import argparse
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Umrah Invoice API")
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--no-reload', action='store_true')
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    cmd = [
        sys.executable, "-m", "uvicorn",
        "umrah_invoice.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print("Starting Umrah Invoice API (FastAPI)...")
    try:
        subprocess.run(cmd, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
