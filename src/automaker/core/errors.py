"""Domain errors raised across the orchestration core."""

from __future__ import annotations


class AutomakerError(Exception):
    """Base for domain errors with a machine-readable code."""

    def __init__(self, message: str, *, code: str) -> None:
        super().__init__(message)
        self.code = code


class AutoModeAlreadyRunningError(AutomakerError):
    """Raised when a loop start is requested while another loop is active."""

    def __init__(self, project_path: str | None = None) -> None:
        message = "Auto mode is already running"
        if project_path:
            message = f"{message} for {project_path}"
        super().__init__(message, code="AUTO_MODE_ALREADY_RUNNING")
        self.project_path = project_path


class ProviderExecutionError(AutomakerError):
    """Raised when a provider session ends without a successful result."""

    def __init__(self, message: str, *, provider: str, session_id: str | None = None) -> None:
        super().__init__(message, code="PROVIDER_EXECUTION_FAILED")
        self.provider = provider
        self.session_id = session_id


class McpConfigError(AutomakerError, ValueError):
    """Raised when an MCP server configuration is unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="MCP_CONFIG_INVALID")


def get_error_message(error: BaseException | object) -> str:
    """Extract a human-readable message from an arbitrary error value."""
    if isinstance(error, BaseException):
        message = str(error)
        if message:
            return message
        return type(error).__name__
    return str(error)


__all__ = [
    "AutoModeAlreadyRunningError",
    "AutomakerError",
    "McpConfigError",
    "ProviderExecutionError",
    "get_error_message",
]
