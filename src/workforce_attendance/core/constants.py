"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 30
MAX_PAGE_SIZE = 100
DEFAULT_REGULAR_HOURS = 8.0
CONFLICT_RETRIES = 1
CLOCK_OUT_NOTE_PREFIX = "Clock out: "
MAX_NOTE_LENGTH = 500
MAX_STORED_NOTE_LENGTH = 1000
MAX_DEVICE_LENGTH = 255
MAX_IP_LENGTH = 64
MAX_ADDRESS_LENGTH = 255
