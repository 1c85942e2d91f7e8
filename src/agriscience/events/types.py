"""Event type constants.

Learn: Centralizing event types as constants prevents typos and makes it
easy to discover every hook point in the system. The store fires these
after a write commits; the realtime notifier listens for them.
"""

# ─── Store post-commit events ────────────────────────────

MONITORING_DATA_CREATED = "monitoring_data.created"
ALERT_CREATED = "alert.created"

# ─── Realtime message types (what clients receive) ───────

WS_AUTH = "auth"
WS_MONITORING_DATA = "monitoring_data"
WS_NEW_ALERT = "new_alert"
