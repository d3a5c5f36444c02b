"""Shared utility functions for VoxPlan."""

from typing import Any

import httpx


def response_details(response: httpx.Response) -> Any:
    """Best-effort extraction of an upstream error payload."""
    try:
        return response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"


def truncate_preview(text: str, limit: int = 400) -> str:
    """Shorten long text for logs, noting how much was cut."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [truncated {len(text) - limit} chars]"
