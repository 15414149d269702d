"""Prometheus metrics for watchsync.

This module provides Prometheus metrics for monitoring session health
and usage.
"""

from prometheus_client import Counter, Gauge

participants = Gauge("watchsync_participants", "Number of currently connected participants")

intents = Counter(
    "watchsync_intents_total",
    "Number of accepted client intents",
    ["intent"],  # Labels: set_media, play, pause, seek, report_time
)

rejected_reports = Counter(
    "watchsync_rejected_reports_total",
    "Number of time reports discarded for exceeding the accept threshold",
)

drift_syncs = Counter(
    "watchsync_drift_syncs_total",
    "Number of TimeSync broadcasts issued by the drift ticker",
)
