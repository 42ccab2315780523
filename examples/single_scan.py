#!/usr/bin/env python3
"""
Single Scan Script.

Connects to the scanner (discovering it if needed), takes one sample and
prints the readings.
"""

import sys
import logging
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from beamscan import PropertiesConfig, Scanner, SampleStatus

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)

CONFIG_FILE = Path.home() / "beamscan.properties"


def main():
    config = PropertiesConfig(CONFIG_FILE)
    scanner = Scanner(config)

    print("Connecting...")
    if not scanner.connect():
        print("Failed to connect! Is the scanner plugged in?")
        return 1

    info = scanner.device_info
    print(f"Connected. Firmware: {info.version if info else '?'}")

    try:
        outcome = scanner.sample()
        if outcome.status is SampleStatus.SUCCEEDED:
            result = outcome.result
            print(f"Scan took {result.duration} with {len(result)} readings:")
            print(", ".join(str(v) for v in result.readings))
        else:
            print(f"No scan: {outcome.status.value} ({outcome.reason})")
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        print("Disconnecting...")
        scanner.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
