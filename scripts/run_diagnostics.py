#!/usr/bin/env python
"""
Check connectivity to the configured record store.

Usage:
    UMRAH_INVOICE_MONGODB_URI=mongodb://... python scripts/run_diagnostics.py
"""
import sys

from umrah_invoice.config.settings import get_settings
from umrah_invoice.services.record_store import create_record_store
from umrah_invoice.utils.logger import setup_logging


def main():
    settings = get_settings()
    setup_logging(settings.log_level)
    store = create_record_store(settings)

    print("=" * 60)
    print(f"RECORD STORE DIAGNOSTIC ({type(store).__name__})")
    print("=" * 60)

    result = store.diagnose()
    if not result["ok"]:
        print(f"\n❌ {result['message']}")
        print(f"  ERROR: {result.get('error')}")
        if result.get("code") is not None:
            print(f"  CODE: {result['code']}")
        sys.exit(1)

    print(f"\n✅ {result['message']}")
    print(f"  Doc ID: {result['id']}")
    print(f"  Round Trip: {result['round_trip_ms']}ms")


if __name__ == "__main__":
    main()
