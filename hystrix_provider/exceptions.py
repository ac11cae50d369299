"""Exceptions raised by the Hystrix metrics provider and its commands."""


class MetricsStreamStartupError(Exception):
    """Raised when the deployed metrics stream never becomes reachable."""

    def __init__(self, url: str, message: str = "Unable to start Hystrix metrics stream.") -> None:
        self.url = url
        self.message = message
        super().__init__(f"{message} ({url})")


class CircuitOpenError(Exception):
    """Raised when a command is short-circuited and has no fallback."""

    def __init__(self, command_name: str) -> None:
        self.command_name = command_name
        super().__init__(f"Circuit for command {command_name} is open")
