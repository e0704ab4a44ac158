"""Custom exceptions for playground manager."""


class PlaygroundManagerError(Exception):
    """Base exception for all playground manager errors."""

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class SpawnError(PlaygroundManagerError):
    """Exception raised when the OS cannot create a subprocess."""

    pass


class InstallError(PlaygroundManagerError):
    """Exception raised when TiUP cannot be downloaded or installed."""

    pass


class VersionCheckError(PlaygroundManagerError):
    """Exception raised when the TiUP binary cannot report its version."""

    pass


class ProvisionTimeout(PlaygroundManagerError):
    """Exception raised when a playground never became ready."""

    def __init__(self, cluster_id: str, attempts: int):
        self.cluster_id = cluster_id
        self.attempts = attempts
        super().__init__(
            "tiup playground timeout",
            f"Cluster '{cluster_id}' did not answer a query after {attempts} attempts. "
            "The playground process was left running.",
        )


class ReclaimTimeout(PlaygroundManagerError):
    """Exception raised when a playground is still answering after clean."""

    def __init__(self, cluster_id: str, attempts: int):
        self.cluster_id = cluster_id
        self.attempts = attempts
        super().__init__(
            "tiup playground shutdown timeout",
            f"Cluster '{cluster_id}' still answered queries after {attempts} attempts.",
        )
