"""
Application-level constants for hardcoded protocol behavior.

These values define the wire protocol and connection lifecycle and should
NEVER be changed via environment variables.

For configurable values (messages, limits, formats, etc.), see
socketchat/settings.py where values can be overridden via environment
variables.
"""

from starlette import status

# ============================================================================
# WebSocket Close Codes
# ============================================================================

# Close code sent to every client when the server shuts down (RFC 6455
# "going away")
WS_SHUTDOWN_CLOSE_CODE = status.WS_1001_GOING_AWAY

# Timeout (seconds) to let queued frames flush when closing connections
# during shutdown
WS_CLOSE_TIMEOUT_SECONDS = 5

# Close code reported by ASGI servers when the socket dropped without a
# close frame
WS_ABNORMAL_CLOSURE_CODE = 1006

# Close code received when the peer closed without a status code
WS_NO_STATUS_CODE = 1005


# ============================================================================
# Disconnect Reasons
# ============================================================================

REASON_CLIENT_DISCONNECT = "client disconnect"
REASON_TRANSPORT_CLOSE = "transport close"
REASON_TRANSPORT_ERROR = "transport error"
REASON_SERVER_SHUTDOWN = "server shutdown"

# Close code → reason carried in the `user-left` broadcast
DISCONNECT_REASONS: dict[int, str] = {
    status.WS_1000_NORMAL_CLOSURE: REASON_CLIENT_DISCONNECT,
    WS_NO_STATUS_CODE: REASON_CLIENT_DISCONNECT,
    status.WS_1001_GOING_AWAY: REASON_TRANSPORT_CLOSE,
    WS_ABNORMAL_CLOSURE_CODE: REASON_TRANSPORT_CLOSE,
    status.WS_1003_UNSUPPORTED_DATA: REASON_TRANSPORT_ERROR,
    status.WS_1011_INTERNAL_ERROR: REASON_TRANSPORT_ERROR,
}


# ============================================================================
# Logging
# ============================================================================

# Number of characters of a chat message echoed into debug logs
LOG_MESSAGE_PREVIEW_CHARS = 50

# Length of correlation IDs attached to log records
CORRELATION_ID_LENGTH = 8
