"""
Constants
Centralised storage for chat limits, backend timeouts and fixed bot texts.
"""
# Chat transport
MAX_MESSAGE_LENGTH = 4096
EDIT_PROMPT_TEXT = (
    "✏️ Edit: reply to this message with your corrections or extra details, "
    "and I'll regenerate test cases."
)

# Backend (seconds). Vision models are slow on the first request.
ANALYSIS_TIMEOUT = 180.0
PROBE_TIMEOUT = 5.0

# Image preprocessing
MAX_IMAGE_SIDE = 1024
JPEG_QUALITY = 85

# Log preview of backend responses
RESPONSE_PREVIEW_LIMIT = 500
