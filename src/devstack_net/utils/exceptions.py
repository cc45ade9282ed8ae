"""Custom exceptions for devstack-net."""

from typing import Sequence


class DevstackNetError(Exception):
    """Base exception for devstack-net errors."""

    pass


class EngineError(DevstackNetError):
    """Exception raised when a container engine call fails."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize EngineError.

        Args:
            message: Error message
            original_error: Original exception from the engine SDK
        """
        self.original_error = original_error
        super().__init__(message)


class EngineUnavailableError(EngineError):
    """Exception raised when the engine cannot be reached or cannot list resources."""

    def __init__(
        self,
        message: str = "Container engine is unreachable",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)


class NetworkNotFoundError(EngineError):
    """Exception raised when a network does not exist."""

    def __init__(self, network: str, original_error: Exception | None = None) -> None:
        self.network = network
        super().__init__(f"Network not found: {network}", original_error)


class ContainerNotFoundError(EngineError):
    """Exception raised when a container does not exist."""

    def __init__(self, container: str, original_error: Exception | None = None) -> None:
        self.container = container
        super().__init__(f"Container not found: {container}", original_error)


class NetworkAlreadyExistsError(EngineError):
    """Exception raised when creating a network whose name is already taken."""

    def __init__(self, network: str, original_error: Exception | None = None) -> None:
        self.network = network
        super().__init__(f"Network already exists: {network}", original_error)


class NotConnectedError(EngineError):
    """Exception raised when disconnecting a container that is not on the network."""

    def __init__(
        self, container: str, network: str, original_error: Exception | None = None
    ) -> None:
        self.container = container
        self.network = network
        super().__init__(
            f"Container {container} is not connected to network {network}", original_error
        )


class ContainerConflictError(EngineError):
    """Exception raised when a container name is already in use."""

    def __init__(self, container: str, original_error: Exception | None = None) -> None:
        self.container = container
        super().__init__(f"Container name already in use: {container}", original_error)


class ContainerRunError(EngineError):
    """Exception raised when a one-shot container exits with a non-zero code."""

    def __init__(
        self, container: str, exit_code: int, original_error: Exception | None = None
    ) -> None:
        """
        Initialize ContainerRunError.

        Args:
            container: Name of the container that failed
            exit_code: Exit code of the container
            original_error: Original exception from the engine SDK
        """
        self.container = container
        self.exit_code = exit_code
        super().__init__(
            f"Container {container} exited with code {exit_code}", original_error
        )


class BootstrapError(DevstackNetError):
    """Exception raised when the CA bootstrap container fails."""

    def __init__(self, container: str, cause: Exception) -> None:
        self.container = container
        self.cause = cause
        super().__init__(f"CA bootstrap container {container} failed: {cause}")


class ReconciliationError(DevstackNetError):
    """Exception raised when app containers could not be attached to the bridge network."""

    def __init__(self, network: str, containers: Sequence[str] = (), reason: str = "") -> None:
        """
        Initialize ReconciliationError.

        Args:
            network: Name of the bridge network
            containers: Names of the containers that failed to attach
            reason: Optional extra detail
        """
        self.network = network
        self.containers = list(containers)
        if self.containers:
            message = f"Failed to attach {', '.join(self.containers)} to network {network}"
        else:
            message = f"Failed to reconcile network {network}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StageError(DevstackNetError):
    """Exception raised when a lifecycle stage fails."""

    def __init__(self, stage: str, cause: Exception) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"Lifecycle stage '{stage}' failed: {cause}")
