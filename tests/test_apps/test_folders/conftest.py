"""Shared fixtures for folders app tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from django.contrib.auth import get_user_model

from server.apps.folders.infrastructure.paths import OwnerIdentity
from server.apps.folders.infrastructure.remote import (
    CommandResult,
    LocalShellExecutor,
    RemoteFolderExecutor,
)
from server.apps.folders.logic.catalog import FolderCatalog
from server.apps.folders.logic.folder_lifecycle import FolderLifecycleManager
from server.apps.folders.logic.locks import FolderLockRegistry
from server.apps.folders.models import Folder, Video

User = get_user_model()


class RecordingExecutor(RemoteFolderExecutor):
    """Executor wrapper that records calls and injects failures.

    ``failures`` maps a method name (``create_folder``) or the first word
    of a command (``rm``, ``mv``) to the exception to raise instead of
    running it. ``failures_after_run`` uses the same keys but raises once,
    after the command has run, like a channel dropping mid-reply.
    """

    def __init__(self, inner: RemoteFolderExecutor) -> None:
        self.inner = inner
        self.content_root = inner.content_root
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failures: dict[str, Exception] = {}
        self.failures_after_run: dict[str, Exception] = {}
        self.on_call: Callable[[str, tuple[Any, ...]], None] | None = None

    def ensure_base_directory(self, server_id: int, owner_login: str) -> None:
        self._record('ensure_base_directory', server_id, owner_login)
        self.inner.ensure_base_directory(server_id, owner_login)

    def create_folder(self, server_id: int, owner_login: str, name: str) -> None:
        self._record('create_folder', server_id, owner_login, name)
        self.inner.create_folder(server_id, owner_login, name)

    def run_command(
        self,
        server_id: int,
        command: str,
        *,
        idempotent: bool = True,
    ) -> CommandResult:
        self._record('run_command', server_id, command)
        result = self.inner.run_command(
            server_id,
            command,
            idempotent=idempotent,
        )
        failure = self.failures_after_run.pop(command.split()[0], None)
        if failure is not None:
            raise failure
        return result

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if self.on_call is not None:
            self.on_call(method, args)
        keys = [method]
        if method == 'run_command':
            keys.append(args[1].split()[0])
        for key in keys:
            if key in self.failures:
                raise self.failures[key]


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing, login 'bob'.
    """
    return User.objects.create_user(
        username='bob',
        password='testpass123',
        email='bob@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance, login 'alice'.
    """
    return User.objects.create_user(
        username='alice',
        password='testpass123',
        email='alice@example.com',
    )


@pytest.fixture
def owner(user) -> OwnerIdentity:
    """Identity of the test user."""
    return OwnerIdentity.from_user(user)


@pytest.fixture
def other_owner(other_user) -> OwnerIdentity:
    """Identity of the second test user."""
    return OwnerIdentity.from_user(other_user)


@pytest.fixture
def content_root(tmp_path) -> Path:
    """Scratch directory standing in for the media server content root."""
    root = tmp_path / 'content'
    root.mkdir()
    return root


@pytest.fixture
def local_executor(content_root) -> LocalShellExecutor:
    """Executor running commands against the scratch directory."""
    return LocalShellExecutor(
        content_root=str(content_root),
        timeout=10,
        retries=0,
        retry_delay=0,
    )


@pytest.fixture
def executor(local_executor) -> RecordingExecutor:
    """Recording executor around the local one."""
    return RecordingExecutor(local_executor)


@pytest.fixture
def catalog() -> FolderCatalog:
    """Folder catalog."""
    return FolderCatalog()


@pytest.fixture
def locks() -> FolderLockRegistry:
    """Lock registry private to the test."""
    return FolderLockRegistry()


@pytest.fixture
def manager(catalog, executor, locks) -> FolderLifecycleManager:
    """Lifecycle manager wired to the recording executor."""
    return FolderLifecycleManager(
        catalog=catalog,
        executor=executor,
        locks=locks,
    )


@pytest.fixture
def make_folder(content_root):
    """Factory creating a folder row and, optionally, its directory.

    Returns:
        Callable(user, name, server_id=1, create_directory=True) -> Folder.
    """

    def factory(
        folder_user: Any,
        name: str,
        server_id: int = 1,
        create_directory: bool = True,
    ) -> Folder:
        folder = Folder.objects.create(
            user=folder_user,
            server_id=server_id,
            name=name,
        )
        if create_directory:
            login = OwnerIdentity.from_user(folder_user).login
            (content_root / login / name).mkdir(parents=True)
        return folder

    return factory


@pytest.fixture
def make_video(content_root):
    """Factory creating a video row inside a folder.

    Returns:
        Callable(folder, filename) -> Video.
    """

    def factory(folder: Folder, filename: str) -> Video:
        login = OwnerIdentity.from_user(folder.user).login
        return Video.objects.create(
            user=folder.user,
            folder=folder,
            name=filename,
            path=f'{content_root}/{login}/{folder.name}/{filename}',
            url=f'https://media.example.com/vod/{login}/{folder.name}/{filename}',
        )

    return factory
