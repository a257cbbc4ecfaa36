#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid surprises during settings load
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
    os.environ.setdefault("BACKEND_BASE_URL", "http://localhost:8080/api/v1")

    import enrollment.main
    print("Import enrollment.main: OK")

    import enrollment.core.controller
    print("Import enrollment.core.controller: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
