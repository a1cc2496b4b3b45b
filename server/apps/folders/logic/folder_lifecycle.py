"""Business logic for folder lifecycle operations.

A folder exists twice: as a catalog row and as a directory on a media
server. The two systems share no transaction, so each operation is a saga
whose step order decides which half-finished state is possible:

- create: catalog row first, directory second. A failed directory
  creation deletes the row again.
- delete: directory first, catalog rows second. A failed removal leaves
  the catalog untouched, so remote content never loses its reference.
- rename: directory first, catalog second. A failed move leaves the
  catalog untouched.

A catalog failure *after* the remote step succeeded cannot be compensated
without redoing destructive remote work. It is logged as a divergence and
raised as ``ReconciliationRequiredError``, including when the final
commit fails. Rename is safe to retry in that state: the old directory is
gone, so the remote step degrades to an idempotent create.

Rename and delete hold the folder's lock and a row lock for their whole
duration, so only one of them is in flight per folder. Create and rename
also hold a lock on the target name, so two folders never race for the
same directory.
"""

import logging
from dataclasses import dataclass
from typing import final

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from server.apps.folders.exceptions import (
    PersistenceError,
    ReconciliationRequiredError,
    RemoteCommandError,
    RemoteConnectionError,
)
from server.apps.folders.infrastructure.paths import (
    OwnerIdentity,
    content_prefix,
    remote_folder_path,
    validate_folder_name,
)
from server.apps.folders.infrastructure.remote import (
    RemoteFolderExecutor,
    folder_exists,
    get_remote_executor,
    move_folder,
    remove_folder,
)
from server.apps.folders.logic.catalog import FolderCatalog
from server.apps.folders.logic.locks import (
    FolderLockRegistry,
    folder_locks,
    name_lock_key,
)
from server.apps.folders.logic.saga import Saga
from server.apps.folders.logic.video_paths import VideoPathRewriter
from server.apps.folders.models import Folder

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True)
class FolderRename:
    """Outcome of a rename."""

    folder_id: int
    old_name: str
    new_name: str
    changed: bool


@final
@dataclass(frozen=True)
class FolderDeletion:
    """Outcome of a delete."""

    folder_id: int
    name: str
    videos_deleted: int


@final
class FolderLifecycleManager:
    """Creates, renames and deletes folders on catalog and media server."""

    def __init__(
        self,
        catalog: FolderCatalog,
        executor: RemoteFolderExecutor,
        rewriter: VideoPathRewriter | None = None,
        locks: FolderLockRegistry | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            catalog: Folder catalog.
            executor: Command channel to media servers.
            rewriter: Video path rewriter; built from ``catalog`` if omitted.
            locks: Per-folder locks; the process-wide registry if omitted.
        """
        self._catalog = catalog
        self._executor = executor
        self._rewriter = rewriter or VideoPathRewriter(catalog)
        self._locks = locks or folder_locks

    def list_folders(self, owner: OwnerIdentity) -> list[Folder]:
        """List the owner's active folders.

        Owners without folders get one unsaved folder named after their
        login, so a first-time client always has somewhere to start.

        Args:
            owner: Authenticated owner.

        Returns:
            Active folders, or a single placeholder with ``id=None``.
        """
        folders = self._catalog.list_by_owner(owner.id)
        if folders:
            return folders

        logger.debug('No folders for owner %d, returning default', owner.id)
        return [
            Folder(
                user_id=owner.id,
                server_id=self._catalog.default_server_id(owner.id),
                name=owner.login,
                status=Folder.Status.ACTIVE,
            ),
        ]

    def create_folder(
        self,
        owner: OwnerIdentity,
        server_id: int,
        name: str,
    ) -> Folder:
        """Create a folder row and its remote directory.

        Args:
            owner: Authenticated owner.
            server_id: Media server to host the directory.
            name: Requested folder name.

        Returns:
            Created folder with its id assigned.

        Raises:
            ValidationError: If the name is invalid or already used.
            PersistenceError: If the row cannot be inserted.
            RemoteExecutionError: If the directory cannot be created; the
                row has been deleted again by then.
        """
        folder_name = validate_folder_name(name)

        with self._locks.hold(name_lock_key(owner.id, folder_name)):
            self._ensure_name_available(owner, folder_name)

            saga = Saga('create_folder')
            saga.step(
                'insert_catalog_row',
                lambda _: self._catalog.insert(owner.id, server_id, folder_name),
                compensation=lambda state: self._discard_row(
                    state['insert_catalog_row'],
                    owner,
                ),
            )
            saga.step(
                'create_remote_directory',
                lambda _: self._create_remote_directory(
                    server_id,
                    owner,
                    folder_name,
                ),
            )
            folder: Folder = saga.execute()['insert_catalog_row']

        logger.info(
            'Folder created: %s (ID: %d, owner: %s, server: %d)',
            folder_name,
            folder.id,
            owner.login,
            server_id,
        )
        return folder

    def rename_folder(
        self,
        owner: OwnerIdentity,
        folder_id: int,
        new_name: str,
    ) -> FolderRename:
        """Rename a folder's directory, row and video paths.

        Renaming to the current name changes nothing and talks to nobody.

        Args:
            owner: Authenticated owner.
            folder_id: Folder to rename.
            new_name: Requested name; surrounding whitespace is ignored.

        Returns:
            FolderRename with the old and new names.

        Raises:
            ValidationError: If the name is invalid or already used.
            FolderNotFoundError: If the folder is absent or foreign.
            PersistenceError: If the catalog fails before anything moved.
            RemoteExecutionError: If the directory cannot be moved; the
                catalog is unchanged.
            ReconciliationRequiredError: If the directory moved but the
                catalog could not follow.
        """
        target_name = validate_folder_name(new_name)
        remote_changed = False

        with (
            self._locks.hold(folder_id),
            self._locks.hold(name_lock_key(owner.id, target_name)),
        ):
            try:
                with transaction.atomic():
                    folder = self._catalog.find_by_owner_and_id(
                        owner.id,
                        folder_id,
                        for_update=True,
                    )
                    old_name = folder.name

                    if old_name == target_name:
                        logger.info(
                            'Folder %d already named %s, nothing to rename',
                            folder_id,
                            target_name,
                        )
                        return FolderRename(
                            folder_id,
                            old_name,
                            target_name,
                            changed=False,
                        )

                    self._ensure_name_available(owner, target_name, folder_id)

                    saga = Saga('rename_folder')
                    saga.step(
                        'move_remote_directory',
                        lambda _: self._move_remote_directory(
                            folder,
                            owner,
                            old_name,
                            target_name,
                        ),
                    )
                    saga.step(
                        'update_catalog',
                        lambda _: self._record_rename(
                            folder,
                            owner,
                            old_name,
                            target_name,
                        ),
                    )
                    saga.execute()
                    remote_changed = True
            except DatabaseError as error:
                if not remote_changed:
                    raise PersistenceError(
                        f'Catalog rename failed: {error}',
                    ) from error
                raise self._divergence(
                    'rename',
                    folder,
                    owner,
                    f'directory is now "{target_name}", commit of catalog '
                    f'still saying "{old_name}" failed',
                ) from error

        logger.info(
            'Folder renamed: %s -> %s (ID: %d, owner: %s)',
            old_name,
            target_name,
            folder_id,
            owner.login,
        )
        return FolderRename(folder_id, old_name, target_name, changed=True)

    def delete_folder(
        self,
        owner: OwnerIdentity,
        folder_id: int,
    ) -> FolderDeletion:
        """Delete a folder's directory, then its row and videos.

        Args:
            owner: Authenticated owner.
            folder_id: Folder to delete.

        Returns:
            FolderDeletion with the number of video rows removed.

        Raises:
            FolderNotFoundError: If the folder is absent or foreign.
            PersistenceError: If the catalog fails before anything was removed.
            RemoteExecutionError: If the directory cannot be removed; the
                catalog is unchanged.
            ReconciliationRequiredError: If the directory is gone but the
                rows could not be deleted.
        """
        remote_changed = False

        with self._locks.hold(folder_id):
            try:
                with transaction.atomic():
                    folder = self._catalog.find_by_owner_and_id(
                        owner.id,
                        folder_id,
                        for_update=True,
                    )

                    saga = Saga('delete_folder')
                    saga.step(
                        'remove_remote_directory',
                        lambda _: remove_folder(
                            self._executor,
                            folder.server_id,
                            self._folder_path(owner, folder.name),
                        ),
                    )
                    saga.step(
                        'delete_catalog_rows',
                        lambda _: self._forget_folder(folder, owner),
                    )
                    videos_deleted = saga.execute()['delete_catalog_rows']
                    remote_changed = True
            except DatabaseError as error:
                if not remote_changed:
                    raise PersistenceError(
                        f'Catalog delete failed: {error}',
                    ) from error
                raise self._divergence(
                    'delete',
                    folder,
                    owner,
                    f'directory "{folder.name}" is gone, commit of the row '
                    'deletion failed',
                ) from error

        logger.info(
            'Folder deleted: %s (ID: %d, owner: %s, videos: %d)',
            folder.name,
            folder_id,
            owner.login,
            videos_deleted,
        )
        return FolderDeletion(folder_id, folder.name, videos_deleted)

    def _ensure_name_available(
        self,
        owner: OwnerIdentity,
        name: str,
        exclude_folder_id: int | None = None,
    ) -> None:
        if self._catalog.name_taken(owner.id, name, exclude_folder_id):
            raise ValidationError(
                f'Folder "{name}" already exists',
                code='unique',
            )

    def _folder_path(self, owner: OwnerIdentity, name: str) -> str:
        return remote_folder_path(self._executor.content_root, owner.login, name)

    def _create_remote_directory(
        self,
        server_id: int,
        owner: OwnerIdentity,
        name: str,
    ) -> None:
        self._executor.ensure_base_directory(server_id, owner.login)
        self._executor.create_folder(server_id, owner.login, name)

    def _move_remote_directory(
        self,
        folder: Folder,
        owner: OwnerIdentity,
        old_name: str,
        new_name: str,
    ) -> None:
        old_path = self._folder_path(owner, old_name)
        new_path = self._folder_path(owner, new_name)

        if not folder_exists(self._executor, folder.server_id, old_path):
            # Treated as already migrated
            logger.warning(
                'Folder %s missing on server %d, creating %s instead',
                old_path,
                folder.server_id,
                new_path,
            )
            self._executor.create_folder(folder.server_id, owner.login, new_name)
            return

        if folder_exists(self._executor, folder.server_id, new_path):
            raise RemoteCommandError(
                f'Cannot rename {old_path}: {new_path} already exists',
                server_id=folder.server_id,
            )

        try:
            move_folder(self._executor, folder.server_id, old_path, new_path)
        except RemoteConnectionError:
            # The move may have run before the channel dropped
            moved = (
                folder_exists(self._executor, folder.server_id, new_path)
                and not folder_exists(self._executor, folder.server_id, old_path)
            )
            if not moved:
                raise
            logger.warning(
                'Channel failed after moving %s -> %s on server %d',
                old_path,
                new_path,
                folder.server_id,
            )

    def _discard_row(self, folder: Folder, owner: OwnerIdentity) -> None:
        try:
            self._catalog.delete(owner.id, folder.id)
        except PersistenceError:
            logger.exception(
                'Orphaned catalog row: folder=%d name=%s owner=%s server=%d',
                folder.id,
                folder.name,
                owner.login,
                folder.server_id,
            )

    def _record_rename(
        self,
        folder: Folder,
        owner: OwnerIdentity,
        old_name: str,
        new_name: str,
    ) -> int:
        try:
            self._catalog.renamed(owner.id, folder.id, new_name)
            return self._rewriter.rewrite_folder_prefix(
                owner.id,
                folder.id,
                content_prefix(owner.login, old_name),
                content_prefix(owner.login, new_name),
            )
        except PersistenceError as error:
            raise self._divergence(
                'rename',
                folder,
                owner,
                f'directory is now "{new_name}", catalog still says "{old_name}"',
            ) from error

    def _forget_folder(self, folder: Folder, owner: OwnerIdentity) -> int:
        try:
            return self._catalog.delete(owner.id, folder.id)
        except PersistenceError as error:
            raise self._divergence(
                'delete',
                folder,
                owner,
                f'directory "{folder.name}" is gone, catalog rows remain',
            ) from error

    def _divergence(
        self,
        operation: str,
        folder: Folder,
        owner: OwnerIdentity,
        detail: str,
    ) -> ReconciliationRequiredError:
        logger.critical(
            'Catalog diverged from media server during %s: '
            'folder=%d owner=%s server=%d; %s',
            operation,
            folder.id,
            owner.login,
            folder.server_id,
            detail,
        )
        return ReconciliationRequiredError(
            f'Folder {folder.id} needs reconciliation after {operation}: {detail}',
            operation=operation,
            folder_id=folder.id,
            server_id=folder.server_id,
        )


def build_folder_lifecycle_manager() -> FolderLifecycleManager:
    """Build a manager wired to the configured executor.

    Returns:
        FolderLifecycleManager instance.
    """
    return FolderLifecycleManager(
        catalog=FolderCatalog(),
        executor=get_remote_executor(),
    )
