"""Custom exception classes for subgraph-deploy."""

from typing import Optional, Sequence


class SubgraphDeployError(Exception):
    """
    Base exception for manifest assembly and deployment errors.

    Attributes:
        stage: Pipeline stage the error was raised in, if any
    """

    stage: Optional[str] = None


class ConfigurationError(SubgraphDeployError, ValueError):
    """Raised when the network context is missing or not recognized."""

    pass


class RecordsNotFoundError(SubgraphDeployError, FileNotFoundError):
    """Raised when the deployment records cache file is not found."""

    pass


class RecordsDownloadError(SubgraphDeployError, RuntimeError):
    """
    Raised when the deployment records cache cannot be downloaded.

    Attributes:
        url: Location the records were requested from
        status_code: HTTP status of the response, if one was received
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class InvalidDeploymentRecordError(SubgraphDeployError, ValueError):
    """Raised when a deployment record has no address or a negative start block."""

    pass


class ManifestError(SubgraphDeployError, ValueError):
    """Raised when a manifest document would be inconsistent."""

    pass


class SchemaError(SubgraphDeployError, ValueError):
    """Raised when a type-definition document cannot be parsed."""

    pass


class SchemaConflictError(SchemaError):
    """
    Raised when two documents define the same name with different shapes.

    Attributes:
        type_name: Name of the conflicting definition
        first: Printed definition seen first
        second: Printed definition that disagrees with it
    """

    def __init__(self, type_name: str, first: str, second: str):
        self.type_name = type_name
        self.first = first
        self.second = second
        super().__init__(
            f"Conflicting definitions for '{type_name}':\n{first}\n--- versus ---\n{second}"
        )


class ExternalCommandError(SubgraphDeployError, RuntimeError):
    """
    Raised when an external tool exits with a nonzero status.

    Attributes:
        stage: Pipeline stage that invoked the command
        command: Argument list of the failed command
        returncode: Exit status of the command
        stderr: Diagnostic output captured from the command
        network: Network being deployed when the command failed, if any
    """

    def __init__(
        self,
        stage: str,
        command: Sequence[str],
        returncode: int,
        stderr: str = "",
        network: Optional[str] = None,
    ):
        self.stage = stage
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        self.network = network

        where = f"{stage} ({network})" if network else stage
        super().__init__(
            f"{where}: `{' '.join(self.command)}` exited with status {returncode}"
        )
