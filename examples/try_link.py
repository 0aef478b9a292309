#!/usr/bin/env python3
"""
Interactive Device Link Test Script.

This script demonstrates the bridge without a network server.
Run it to open the serial link, watch one unit's published state, and send a
home command through the dispatcher.
"""

import sys
import time
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from axis_bridge import Bridge, DeviceLink, InvocationError, Unit
from axis_bridge.server import LocalServer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)

PORT = sys.argv[1] if len(sys.argv) > 1 else "/dev/ttyACM0"
UNIT = Unit(id=1, name="cross-slide")


def main():
    print(f"Opening {PORT}...")
    link = DeviceLink(port=PORT)
    if not link.connect():
        print("Failed to open the port! Is the device plugged in?")
        return

    server = LocalServer()
    bridge = Bridge(server, link, [UNIT])
    bridge.setup()
    nodes = [bridge.state.node_id(UNIT.id, f) for f in ("position", "busy", "status")]

    try:
        with server:
            print("\nWatching published state for 5 seconds (Ctrl+C to stop)...")
            for i in range(5):
                position, busy, status = server.read_values(nodes)
                print(f"\r[{i+1}/5] position={position.value} busy={busy.value} "
                      f"status={status.value}", end="")
                sys.stdout.flush()
                time.sleep(1)

            print("\n\nSending home...")
            try:
                result = server.call_method(bridge.method_node(UNIT.id, "home"))
                print(f"Accepted, busy={result.busy}")
            except InvocationError as e:
                print(f"Rejected: {e}")

            time.sleep(2)
            position, busy, status = server.read_values(nodes)
            print(f"position={position.value} busy={busy.value} status={status.value}")

    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        print("\nClosing...")
        link.disconnect()
        print("Done.")


if __name__ == "__main__":
    main()
