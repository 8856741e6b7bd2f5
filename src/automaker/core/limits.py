"""Timeouts and budgets shared across the core."""

from __future__ import annotations

DEFAULT_MAX_TURNS = 20
MCP_TEST_TIMEOUT_MS = 10_000
AUTO_LOOP_STOP_TIMEOUT = 5.0
BACKGROUND_SHUTDOWN_TIMEOUT = 2.0
MAX_LOG_MESSAGE_LENGTH = 4_000
MAX_EVENT_TEXT_LENGTH = 2_000
