"""
Design (config.py)
- Purpose: Centralize constants and configuration.
- Inputs: Environment variables ICARUS_LOG_LEVEL / ICARUS_LOG_FILE (logging only).
- Outputs: Constants (tag range, surcharge, logging, UI limits).
- Side effects: None.
- Thread-safety: N/A (read-only constants).
"""

import os
from decimal import Decimal

# Service tags: multiples of TAG_STEP in [TAG_START, TAG_MAX]; wrap back to TAG_START
TAG_START = 100
TAG_STEP = 10
TAG_MAX = 900

# Express jobs carry a 15% surcharge on the entered (base) cost
EXPRESS_SURCHARGE = Decimal("1.15")
COST_PLACES = Decimal("0.01")

# Cost keystroke filter: digits with at most two decimals, no sign
COST_INPUT_PATTERN = r"^\d+(\.\d{0,2})?$"

LOG_LEVEL = os.getenv("ICARUS_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("ICARUS_LOG_FILE") or None

# maximum number of log lines kept in the Logs panel (oldest trimmed)
LOG_MAX_LINES = 1000

WINDOW_TITLE = "Icarus Drone Service"
NOTIFY_TIMEOUT_SEC = 5
