"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SESSION_IDLE_TIMEOUT_SECONDS = 1800
SESSION_ROTATE_INTERVAL_SECONDS = 600
CSRF_TOKEN_BYTES = 32

MAX_UPLOAD_BYTES = 2 * 1024 * 1024
DEFAULT_PENDING_LIMIT = 200
DEFAULT_HISTORY_LIMIT = 500

DEFAULT_GRADE_WEIGHT = 1.0

# Column limits of grade_items (DECIMAL(5,2) points, DECIMAL(3,2) weight, VARCHAR(100) name)
# and periods (VARCHAR(50) label).
MAX_ITEM_POINTS = 999.99
MAX_ITEM_WEIGHT = 9.99
MAX_ITEM_NAME_LENGTH = 100
MAX_PERIOD_LABEL_LENGTH = 50

# Extension -> Content-Type for justification documents. Anything else is served
# as application/octet-stream and refused at upload.
DOCUMENT_MIME_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "txt": "text/plain",
}
DEFAULT_DOCUMENT_MIME_TYPE = "application/octet-stream"
