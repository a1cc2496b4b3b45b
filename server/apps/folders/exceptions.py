"""Exceptions for folders app.

Validation failures use ``django.core.exceptions.ValidationError``
directly; everything else that can go wrong during a folder lifecycle
operation is defined here.
"""

from django.core.exceptions import ObjectDoesNotExist


class FolderNotFoundError(ObjectDoesNotExist):
    """Raised when a folder is absent or belongs to another owner."""

    def __init__(self, owner_id: int, folder_id: int) -> None:
        """Initialize FolderNotFoundError.

        Args:
            owner_id: ID of the user that asked for the folder.
            folder_id: Requested folder ID.
        """
        self.owner_id = owner_id
        self.folder_id = folder_id
        super().__init__(f'Folder {folder_id} not found')


class RemoteExecutionError(Exception):
    """Raised when a command on a media server cannot be completed."""

    #: Whether repeating the same command may succeed.
    transient = False

    def __init__(
        self,
        message: str,
        *,
        server_id: int,
        command: str = '',
        exit_code: int | None = None,
        stderr: str = '',
    ) -> None:
        """Initialize RemoteExecutionError.

        Args:
            message: Human readable description.
            server_id: Media server the command was sent to.
            command: Shell command that failed.
            exit_code: Exit status, if the command ran at all.
            stderr: Captured error output.
        """
        self.server_id = server_id
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message)


class RemoteConnectionError(RemoteExecutionError):
    """The command channel could not reach the server."""

    transient = True


class RemoteTimeoutError(RemoteConnectionError):
    """The command did not finish within the configured timeout."""


class RemoteAuthenticationError(RemoteExecutionError):
    """The server refused our credentials."""


class RemoteCommandError(RemoteExecutionError):
    """The command ran but failed (non-zero exit or refused precondition)."""


class PersistenceError(Exception):
    """Raised when the folder catalog cannot be read or written."""


class ReconciliationRequiredError(PersistenceError):
    """Catalog write failed after the remote side was already changed.

    Automatic compensation is no longer possible: the remote directory
    reflects the requested operation but the catalog does not.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        folder_id: int,
        server_id: int,
    ) -> None:
        """Initialize ReconciliationRequiredError.

        Args:
            message: Human readable description.
            operation: Lifecycle operation that diverged.
            folder_id: Affected folder ID.
            server_id: Media server holding the directory.
        """
        self.operation = operation
        self.folder_id = folder_id
        self.server_id = server_id
        super().__init__(message)
