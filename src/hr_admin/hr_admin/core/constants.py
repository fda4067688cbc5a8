"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LIST_LIMIT = 200
DEFAULT_UPLOAD_MAX_ATTEMPTS = 5
DEFAULT_UPLOAD_WINDOW_SECONDS = 60 * 60
STATUS_UPDATE_ATTEMPTS = 2
MONEY_PLACES = 2
MIN_YEAR = 1900
MAX_YEAR = 9999
DEPARTMENT_NAME_MAX_LENGTH = 100
