"""
Log codes for configuration and delivery operations.
"""

CONFIG = "config"

# Insights configuration
INSIGHTS = f"{CONFIG}.insights"
INSIGHTS_RESOLVED = f"{INSIGHTS}.resolved"
INSIGHTS_MISSING_VALUE = f"{INSIGHTS}.missing_value"
INSIGHTS_CONFIG_MISSING_SECTION = f"{INSIGHTS}.missing_section"

# Proxy configuration
PROXY = f"{CONFIG}.proxy"
PROXY_RESOLVED = f"{PROXY}.resolved"
PROXY_NOT_DEFINED = f"{PROXY}.not_defined"
PROXY_PROTOCOL_INVALID = f"{PROXY}.invalid_protocol"

# Client
CLIENT = "client"
CLIENT_EVENT_REJECTED = f"{CLIENT}.event_rejected"
CLIENT_THRESHOLD_REACHED = f"{CLIENT}.threshold_reached"
CLIENT_FLUSH_STARTED = f"{CLIENT}.flush.started"
CLIENT_FLUSH_FAILED = f"{CLIENT}.flush.failed"
CLIENT_FLUSH_SUBMITTED = f"{CLIENT}.flush.submitted"

# Transport
TRANSPORT = "transport"
TRANSPORT_REQUEST_FAILED = f"{TRANSPORT}.request_failed"
TRANSPORT_REQUEST_REJECTED = f"{TRANSPORT}.request_rejected"
TRANSPORT_REQUEST_CANCELLED = f"{TRANSPORT}.request_cancelled"
TRANSPORT_DEADLINE_EXCEEDED = f"{TRANSPORT}.deadline_exceeded"

# Periodic sync
SCHEDULER = "scheduler"
SCHEDULER_SYNC_FAILED = f"{SCHEDULER}.sync_failed"
SCHEDULER_SYNC_CRASHED = f"{SCHEDULER}.sync_crashed"
