"""Command executors for remote media servers.

Folder directories live on media servers that share neither a database
transaction nor a filesystem with this application. The only way to touch
them is to send a shell command and wait for its result.

``RemoteFolderExecutor`` is the contract the business logic depends on.
``ShellFolderExecutor`` implements it on top of a single "run this command"
primitive with a timeout and a bounded retry on transient failures;
subclasses only decide *where* the command runs.
"""

import abc
import logging
import shlex
import subprocess  # noqa: S404
from dataclasses import dataclass
from typing import Final, final, override

from django.conf import settings
from django.utils.module_loading import import_string

from server.apps.folders.exceptions import (
    RemoteAuthenticationError,
    RemoteCommandError,
    RemoteConnectionError,
    RemoteExecutionError,
    RemoteTimeoutError,
)
from server.apps.folders.infrastructure.paths import (
    remote_base_path,
    remote_folder_path,
)
from server.apps.folders.infrastructure.retry import call_with_retry
from server.apps.folders.models import MediaServer

logger = logging.getLogger(__name__)

# ssh exits with 255 when the channel itself fails
_SSH_FAILURE_EXIT_CODE: Final = 255
_AUTH_FAILURE_MARKERS: Final = (
    'Permission denied',
    'Host key verification failed',
    'Too many authentication failures',
)

_EXISTS_MARKER: Final = 'EXISTS'
_MISSING_MARKER: Final = 'MISSING'


@final
@dataclass(frozen=True)
class CommandResult:
    """Outcome of a remote command."""

    stdout: str
    stderr: str
    exit_code: int


class RemoteFolderExecutor(abc.ABC):
    """Runs folder operations on a media server.

    ``ensure_base_directory`` and ``create_folder`` are idempotent:
    repeating them with the same arguments never errors and never
    creates duplicate state. Every method raises a
    ``RemoteExecutionError`` subclass on connection, authentication or
    non-zero exit.
    """

    content_root: str

    @abc.abstractmethod
    def ensure_base_directory(self, server_id: int, owner_login: str) -> None:
        """Make sure ``<content_root>/<owner_login>`` exists."""

    @abc.abstractmethod
    def create_folder(
        self,
        server_id: int,
        owner_login: str,
        name: str,
    ) -> None:
        """Make sure ``<content_root>/<owner_login>/<name>`` exists."""

    @abc.abstractmethod
    def run_command(
        self,
        server_id: int,
        command: str,
        *,
        idempotent: bool = True,
    ) -> CommandResult:
        """Run an arbitrary shell command on the server.

        Commands that are not ``idempotent`` are sent at most once.
        """


class ShellFolderExecutor(RemoteFolderExecutor):
    """Executor that turns every operation into a shell command.

    Subclasses implement ``_execute`` and report channel failures as
    ``RemoteConnectionError`` (retried) or ``RemoteAuthenticationError``
    (not retried). Non-zero exit codes become ``RemoteCommandError`` and
    are never retried either.
    """

    def __init__(
        self,
        content_root: str,
        timeout: float = 30.0,
        retries: int = 2,
        retry_delay: float = 0.5,
    ) -> None:
        """Initialize executor.

        Args:
            content_root: Root directory holding owner directories.
            timeout: Seconds a single attempt may take.
            retries: Extra attempts on transient failures.
            retry_delay: Initial backoff between attempts.
        """
        self.content_root = str(content_root)
        self.timeout = timeout
        self.retries = max(retries, 0)
        self.retry_delay = retry_delay

    @override
    def ensure_base_directory(self, server_id: int, owner_login: str) -> None:
        """Create the owner's base directory if missing.

        Args:
            server_id: Target media server.
            owner_login: Validated owner login.
        """
        path = remote_base_path(self.content_root, owner_login)
        self.run_command(server_id, f'mkdir -p {shlex.quote(path)}')
        logger.info('Ensured base directory on server %d: %s', server_id, path)

    @override
    def create_folder(
        self,
        server_id: int,
        owner_login: str,
        name: str,
    ) -> None:
        """Create a folder directory if missing.

        Args:
            server_id: Target media server.
            owner_login: Validated owner login.
            name: Validated folder name.
        """
        path = remote_folder_path(self.content_root, owner_login, name)
        self.run_command(server_id, f'mkdir -p {shlex.quote(path)}')
        logger.info('Created folder on server %d: %s', server_id, path)

    @override
    def run_command(
        self,
        server_id: int,
        command: str,
        *,
        idempotent: bool = True,
    ) -> CommandResult:
        """Run a command, retrying transient channel failures.

        A command that already ran may have changed the server before the
        channel failed, so only idempotent commands are retried.

        Args:
            server_id: Target media server.
            command: Shell command line.
            idempotent: Whether repeating the command is harmless.

        Returns:
            CommandResult of the successful attempt.

        Raises:
            RemoteCommandError: If the command exits with non-zero status.
            RemoteExecutionError: If the channel fails.
        """
        logger.debug('Running on server %d: %s', server_id, command)
        result = call_with_retry(
            lambda: self._execute(server_id, command),
            retries=self.retries if idempotent else 0,
            initial_delay=self.retry_delay,
            retry_on=(RemoteConnectionError,),
        )
        if result.exit_code != 0:
            raise RemoteCommandError(
                'Command exited with status {code}: {stderr}'.format(
                    code=result.exit_code,
                    stderr=result.stderr.strip(),
                ),
                server_id=server_id,
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result

    @abc.abstractmethod
    def _execute(self, server_id: int, command: str) -> CommandResult:
        """Run one attempt of ``command``."""

    def _run_process(
        self,
        argv: list[str],
        server_id: int,
        command: str,
    ) -> CommandResult:
        try:
            completed = subprocess.run(  # noqa: S603
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as error:
            raise RemoteTimeoutError(
                f'Command timed out after {self.timeout}s',
                server_id=server_id,
                command=command,
            ) from error
        except OSError as error:
            raise RemoteExecutionError(
                f'Cannot start {argv[0]}: {error}',
                server_id=server_id,
                command=command,
            ) from error
        return CommandResult(
            stdout=completed.stdout,
            stderr=completed.stderr,
            exit_code=completed.returncode,
        )


@final
class LocalShellExecutor(ShellFolderExecutor):
    """Runs commands with ``sh`` on the application host.

    Every server id maps to the local machine. Used for development and
    tests, where ``content_root`` points at a scratch directory.
    """

    @override
    def _execute(self, server_id: int, command: str) -> CommandResult:
        return self._run_process(['sh', '-c', command], server_id, command)


@final
class SSHShellExecutor(ShellFolderExecutor):
    """Runs commands on a ``MediaServer`` through the ``ssh`` client.

    Authentication is key based (``BatchMode=yes``): a password prompt
    would block the request forever.
    """

    def __init__(  # noqa: WPS211
        self,
        content_root: str,
        timeout: float = 30.0,
        retries: int = 2,
        retry_delay: float = 0.5,
        connect_timeout: int = 10,
        ssh_binary: str = 'ssh',
    ) -> None:
        """Initialize executor.

        Args:
            content_root: Root directory holding owner directories.
            timeout: Seconds a single attempt may take.
            retries: Extra attempts on transient failures.
            retry_delay: Initial backoff between attempts.
            connect_timeout: Seconds ssh may spend connecting.
            ssh_binary: ssh client executable.
        """
        super().__init__(content_root, timeout, retries, retry_delay)
        self.connect_timeout = connect_timeout
        self.ssh_binary = ssh_binary

    @override
    def _execute(self, server_id: int, command: str) -> CommandResult:
        server = self._get_server(server_id)
        result = self._run_process(
            self.build_argv(server, command),
            server_id,
            command,
        )
        if result.exit_code == _SSH_FAILURE_EXIT_CODE:
            self._raise_channel_error(server_id, command, result)
        return result

    def build_argv(self, server: MediaServer, command: str) -> list[str]:
        """Build the ssh invocation for a command.

        Args:
            server: Target media server.
            command: Shell command line to run remotely.

        Returns:
            Argument vector for ``subprocess.run``.
        """
        argv = [
            self.ssh_binary,
            '-o',
            'BatchMode=yes',
            '-o',
            f'ConnectTimeout={self.connect_timeout}',
            '-p',
            str(server.port),
        ]
        if server.identity_file:
            argv.extend(['-i', server.identity_file])
        argv.extend([f'{server.ssh_user}@{server.host}', command])
        return argv

    def _get_server(self, server_id: int) -> MediaServer:
        try:
            return MediaServer.objects.get(id=server_id, is_active=True)
        except MediaServer.DoesNotExist as error:
            raise RemoteExecutionError(
                f'Media server {server_id} is not configured',
                server_id=server_id,
            ) from error

    def _raise_channel_error(
        self,
        server_id: int,
        command: str,
        result: CommandResult,
    ) -> None:
        stderr = result.stderr.strip()
        if any(marker in stderr for marker in _AUTH_FAILURE_MARKERS):
            raise RemoteAuthenticationError(
                f'Authentication to server {server_id} failed: {stderr}',
                server_id=server_id,
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        raise RemoteConnectionError(
            f'Connection to server {server_id} failed: {stderr}',
            server_id=server_id,
            command=command,
            exit_code=result.exit_code,
            stderr=result.stderr,
        )


def get_remote_executor() -> RemoteFolderExecutor:
    """Build the executor configured in ``FOLDERS_REMOTE_EXECUTOR``.

    Returns:
        Executor instance.
    """
    executor_config = settings.FOLDERS_REMOTE_EXECUTOR
    backend = import_string(executor_config['BACKEND'])
    return backend(**executor_config.get('OPTIONS', {}))


def folder_exists(
    executor: RemoteFolderExecutor,
    server_id: int,
    path: str,
) -> bool:
    """Check whether a directory exists on the server.

    Args:
        executor: Executor to run the check with.
        server_id: Target media server.
        path: Absolute directory path.

    Returns:
        True if the directory exists.

    Raises:
        RemoteCommandError: If the check output is not recognized.
    """
    quoted = shlex.quote(path)
    command = (
        f'if [ -d {quoted} ]; then echo {_EXISTS_MARKER}; '
        f'else echo {_MISSING_MARKER}; fi'
    )
    marker = executor.run_command(server_id, command).stdout.strip()
    if marker not in {_EXISTS_MARKER, _MISSING_MARKER}:
        raise RemoteCommandError(
            f'Unexpected existence check output: {marker!r}',
            server_id=server_id,
            command=command,
        )
    return marker == _EXISTS_MARKER


def remove_folder(
    executor: RemoteFolderExecutor,
    server_id: int,
    path: str,
) -> None:
    """Remove a directory and everything below it.

    A missing directory is not an error.

    Args:
        executor: Executor to run the command with.
        server_id: Target media server.
        path: Absolute directory path.
    """
    executor.run_command(server_id, f'rm -rf {shlex.quote(path)}')
    logger.info('Removed folder on server %d: %s', server_id, path)


def move_folder(
    executor: RemoteFolderExecutor,
    server_id: int,
    source: str,
    destination: str,
) -> None:
    """Rename a directory in place.

    The move is never retried: after a channel failure the caller has to
    check both paths to learn whether it happened.

    Args:
        executor: Executor to run the command with.
        server_id: Target media server.
        source: Existing directory path.
        destination: New directory path, must not exist.
    """
    executor.run_command(
        server_id,
        f'mv {shlex.quote(source)} {shlex.quote(destination)}',
        idempotent=False,
    )
    logger.info(
        'Moved folder on server %d: %s -> %s',
        server_id,
        source,
        destination,
    )
