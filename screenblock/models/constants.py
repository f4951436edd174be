"""Constants for screenblock.

This module centralizes the default values used by the blocking engine and the stats ledger.
"""


# Schedule defaults
DEFAULT_BLOCK_DURATION_MINUTES = 30  # start == end windows fall back to this

# Blocking loop
TICK_INTERVAL_SECONDS = 1.0
WAKE_GAP_SECONDS = 30.0  # wall-clock jump treated as a missed sleep/wake cycle

# Snooze / manual blocks
DEFAULT_SNOOZE_MINUTES = 5
MANUAL_BLOCK_MIN_REMAINING_MINUTES = 1

# Reminders
DEFAULT_NOTIFICATION_LEAD_MINUTES = 5
REMINDER_HORIZON_HOURS = 24

# Next-start search horizon
NEXT_START_SEARCH_DAYS = 7
