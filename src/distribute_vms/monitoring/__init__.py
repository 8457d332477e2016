"""Monitoring module for distribute-vms.

Provides Telegram notifications and metrics tracking for profiling runs.
"""

from .metrics import (
    ProfileMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from .telegram_notifier import (
    format_error,
    format_final_summary,
    format_profile_start,
    format_run_milestone,
    send_telegram,
)

__all__ = [
    # Metrics
    "ProfileMetrics",
    "RunMetrics",
    "export_to_csv",
    "export_to_json",
    "print_summary",
    # Telegram
    "send_telegram",
    "format_profile_start",
    "format_run_milestone",
    "format_error",
    "format_final_summary",
]
