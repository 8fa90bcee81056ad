"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MAX_STUDENTS = 30
DEFAULT_MARKED_BY = "system"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
EXPORT_ROW_LIMIT = 10000
