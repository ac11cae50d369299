"""Runtime exceptions."""


class ConfigurationError(Exception):
    """Raised when runtime configuration is invalid."""

    pass


class ProviderInterruptedException(Exception):
    """Raised inside a provider thread when the runtime asks it to stop."""

    def __init__(self, message: str = "Provider thread interrupted") -> None:
        self.message = message
        super().__init__(message)


class ServletDeploymentError(Exception):
    """Raised when a servlet cannot be mounted on the HTTP server."""

    def __init__(self, context_path: str, cause: str) -> None:
        self.context_path = context_path
        self.cause = cause
        super().__init__(f"Cannot deploy servlets at /{context_path.strip('/')} because {cause}")
