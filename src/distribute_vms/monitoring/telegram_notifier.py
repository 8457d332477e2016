"""Lightweight Telegram notification for profiling progress.

Sends plain-text messages to a Telegram channel via the Bot API for:
- Profiling start
- Run milestones with the running average deviation
- Errors
- Final summary

No retry logic, progress updates are non-critical.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


async def send_telegram(
    message: str,
    chat_id: str | None = None,
    token: str | None = None,
) -> bool:
    """Send a plain-text message to a Telegram channel.

    Args:
        message: Text to send.
        chat_id: Telegram chat ID. Defaults to TELEGRAM_CHAT_ID env var.
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN env var.

    Returns:
        True if the message was sent successfully, False otherwise
        (including when no token or chat id is configured).
    """
    token = token or os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return False

    chat_id = chat_id or os.environ.get("TELEGRAM_CHAT_ID", "")
    if not chat_id:
        return False

    url = TELEGRAM_API.format(token=token)
    payload = {"chat_id": chat_id, "text": message}

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
            data = resp.json()
            return bool(data.get("ok", False))
    except (httpx.HTTPError, ValueError) as err:
        logger.debug(f"Telegram notification failed: {err}")
        return False


def format_profile_start(
    num_test_runs: int,
    num_hypervisors: int,
    num_vms: int,
) -> str:
    """Format profiling start notification.

    Example:
        >>> print(format_profile_start(200, 250, 1000))
        🚀 Profiling Started
        Runs: 200
        Hypervisors: 250, Vms: 1000
    """
    return (
        f"🚀 Profiling Started\n"
        f"Runs: {num_test_runs}\n"
        f"Hypervisors: {num_hypervisors}, Vms: {num_vms}"
    )


def format_run_milestone(
    runs_completed: int,
    total_runs: int,
    avg_deviation: float,
) -> str:
    """Format run milestone notification.

    Example:
        >>> print(format_run_milestone(20, 200, 3.25))
        📊 Progress Update
        Completed: 20/200 runs (10%)
        Avg Deviation: 3.25%
    """
    progress_pct = (runs_completed / total_runs) * 100
    return (
        f"📊 Progress Update\n"
        f"Completed: {runs_completed}/{total_runs} runs ({progress_pct:.0f}%)\n"
        f"Avg Deviation: {avg_deviation:.2f}%"
    )


def format_error(error_type: str, error_message: str, context: dict[str, Any] | None = None) -> str:
    """Format error notification message.

    Example:
        >>> print(format_error("CapacityExceededError", "hv1 is full", {"vm": "vm7"}))
        ⚠️ Error: CapacityExceededError
        hv1 is full
        Context: vm=vm7
    """
    lines = [
        f"⚠️ Error: {error_type}",
        error_message,
    ]
    if context:
        ctx_str = ", ".join(f"{k}={v}" for k, v in context.items())
        lines.append(f"Context: {ctx_str}")
    return "\n".join(lines)


def format_final_summary(
    total_runs: int,
    avg_time_ms: float,
    avg_deviation: float,
    total_rejected: int,
    runtime_seconds: float,
) -> str:
    """Format final profiling summary.

    Example:
        >>> print(format_final_summary(200, 0.0412, 2.5, 0, 90))
        ✅ Profiling Complete
        Runs: 200
        Average time per Vm: 0.0412ms
        Average deviation: 2.50%
        Rejected Vms: 0
        Runtime: 1.5 minutes
    """
    runtime_minutes = runtime_seconds / 60
    return (
        f"✅ Profiling Complete\n"
        f"Runs: {total_runs}\n"
        f"Average time per Vm: {avg_time_ms:.4f}ms\n"
        f"Average deviation: {avg_deviation:.2f}%\n"
        f"Rejected Vms: {total_rejected}\n"
        f"Runtime: {runtime_minutes:.1f} minutes"
    )
