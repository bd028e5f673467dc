#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Dummy env so config load never trips on a missing variable
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
    os.environ.setdefault("REPLY_DELIVERY_MODE", "inline")

    import remitbot.main
    print("Import remitbot.main: OK")

    import remitbot.queue.jobs
    print("Import remitbot.queue.jobs: OK")

    from remitbot.core.dispatcher import COMMANDS, ACTIONS
    print(f"Dispatcher tables: {len(COMMANDS)} commands, {len(ACTIONS)} actions")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
