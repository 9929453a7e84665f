"""Runtime configuration defaults for scanning and the order console."""

from __future__ import annotations

import os

# Timing values tuned against the shop's handheld scanner; do not retune
# without re-testing on hardware.
FAST_KEY_THRESHOLD_S = 0.030
INACTIVITY_TIMEOUT_S = 0.100
SCANNER_STREAK = 3
LONG_CODE_LENGTH = 8

# Upper bound on the wait between opening the order surface from the idle
# page and dispatching the scan that opened it.
SETTLE_DELAY_S = 0.150

QUANTITY_FIELD_ID = "quantity"

_DEBUG_LOG_ENV = "ORDER_SCANNER_DEBUG_LOG"
_CATALOG_ENV = "ORDER_SCANNER_CATALOG"

DEBUG_LOG_PATH = os.environ.get(_DEBUG_LOG_ENV, "").strip() or "/tmp/order-scanner-debug.log"
CATALOG_PATH = os.environ.get(_CATALOG_ENV, "").strip() or None
