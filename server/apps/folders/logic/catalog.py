"""Folder catalog: the only writer of folder and video rows.

Every method takes the owner id and filters on it. A record is never
trusted to carry its own owner; a folder id that belongs to somebody else
behaves exactly like a missing one.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import final

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from server.apps.folders.exceptions import FolderNotFoundError, PersistenceError
from server.apps.folders.models import Folder, Video

logger = logging.getLogger(__name__)


@contextmanager
def _persistence_errors(action: str) -> Iterator[None]:
    """Re-raise database failures as ``PersistenceError``.

    Args:
        action: Catalog action used in the error message.

    Yields:
        Nothing.

    Raises:
        PersistenceError: If the block raised ``DatabaseError``.
    """
    try:
        yield
    except DatabaseError as error:
        logger.exception('Catalog %s failed', action)
        raise PersistenceError(f'Catalog {action} failed: {error}') from error


@final
class FolderCatalog:
    """Owner-scoped access to ``Folder`` and ``Video`` rows."""

    def list_by_owner(self, owner_id: int) -> list[Folder]:
        """List the owner's active folders.

        Args:
            owner_id: Folder owner.

        Returns:
            Active folders, oldest first.
        """
        with _persistence_errors('list'):
            return list(
                Folder.objects.filter(
                    user_id=owner_id,
                    status=Folder.Status.ACTIVE,
                ).order_by('id'),
            )

    def find_by_owner_and_id(
        self,
        owner_id: int,
        folder_id: int,
        *,
        for_update: bool = False,
    ) -> Folder:
        """Get one of the owner's active folders.

        Args:
            owner_id: Folder owner.
            folder_id: Folder to fetch.
            for_update: Lock the row until the surrounding transaction ends.
                Must be called inside ``transaction.atomic()``.

        Returns:
            Folder instance.

        Raises:
            FolderNotFoundError: If absent or owned by somebody else.
        """
        queryset = Folder.objects.filter(
            id=folder_id,
            user_id=owner_id,
            status=Folder.Status.ACTIVE,
        )
        if for_update:
            queryset = queryset.select_for_update()

        with _persistence_errors('lookup'):
            folder = queryset.first()

        if folder is None:
            raise FolderNotFoundError(owner_id, folder_id)
        return folder

    def name_taken(
        self,
        owner_id: int,
        name: str,
        exclude_folder_id: int | None = None,
    ) -> bool:
        """Check whether another active folder already uses a name.

        Args:
            owner_id: Folder owner.
            name: Candidate name.
            exclude_folder_id: Folder being renamed, ignored in the check.

        Returns:
            True if the name is in use.
        """
        queryset = Folder.objects.filter(
            user_id=owner_id,
            name=name,
            status=Folder.Status.ACTIVE,
        )
        if exclude_folder_id is not None:
            queryset = queryset.exclude(id=exclude_folder_id)

        with _persistence_errors('lookup'):
            return queryset.exists()

    def default_server_id(self, owner_id: int) -> int:
        """Server for an owner's new folders.

        The server of the owner's first folder wins, so an owner's folders
        stay together; owners without folders get the configured default.

        Args:
            owner_id: Folder owner.

        Returns:
            Media server id.
        """
        with _persistence_errors('lookup'):
            server_id = (
                Folder.objects.filter(user_id=owner_id)
                .order_by('id')
                .values_list('server_id', flat=True)
                .first()
            )
        if server_id is None:
            return settings.FOLDERS_DEFAULT_SERVER_ID
        return server_id

    def insert(self, owner_id: int, server_id: int, name: str) -> Folder:
        """Create an active folder row.

        Args:
            owner_id: Folder owner.
            server_id: Media server hosting the directory.
            name: Validated folder name.

        Returns:
            Created folder with its id assigned.
        """
        with _persistence_errors('insert'), transaction.atomic():
            folder = Folder.objects.create(
                user_id=owner_id,
                server_id=server_id,
                name=name,
                status=Folder.Status.ACTIVE,
            )
        logger.info(
            'Folder record created: %s (ID: %d, owner: %d)',
            name,
            folder.id,
            owner_id,
        )
        return folder

    def renamed(self, owner_id: int, folder_id: int, new_name: str) -> Folder:
        """Change a folder's name.

        Args:
            owner_id: Folder owner.
            folder_id: Folder to rename.
            new_name: Validated new name.

        Returns:
            Updated folder.

        Raises:
            FolderNotFoundError: If absent or owned by somebody else.
        """
        with _persistence_errors('rename'), transaction.atomic():
            updated = Folder.objects.filter(
                id=folder_id,
                user_id=owner_id,
                status=Folder.Status.ACTIVE,
            ).update(name=new_name, updated_at=timezone.now())

        if not updated:
            raise FolderNotFoundError(owner_id, folder_id)

        logger.info('Folder record renamed: ID=%d -> %s', folder_id, new_name)
        return self.find_by_owner_and_id(owner_id, folder_id)

    def delete(self, owner_id: int, folder_id: int) -> int:
        """Delete a folder and every video in it.

        Args:
            owner_id: Folder owner.
            folder_id: Folder to delete.

        Returns:
            Number of video rows deleted.
        """
        with _persistence_errors('delete'), transaction.atomic():
            videos_deleted, _ = Video.objects.filter(
                user_id=owner_id,
                folder_id=folder_id,
            ).delete()
            folders_deleted, _ = Folder.objects.filter(
                id=folder_id,
                user_id=owner_id,
            ).delete()

        logger.info(
            'Folder record deleted: ID=%d (%d folders, %d videos)',
            folder_id,
            folders_deleted,
            videos_deleted,
        )
        return videos_deleted

    def list_content_under_folder(
        self,
        owner_id: int,
        folder_id: int,
    ) -> list[Video]:
        """List videos stored in a folder.

        Args:
            owner_id: Folder owner.
            folder_id: Folder to list.

        Returns:
            Videos of the folder, oldest first.
        """
        with _persistence_errors('list'):
            return list(
                Video.objects.filter(
                    user_id=owner_id,
                    folder_id=folder_id,
                ).order_by('id'),
            )

    def save_content_paths(self, owner_id: int, videos: list[Video]) -> int:
        """Persist new ``path``/``url`` values of videos.

        Args:
            owner_id: Owner every video must belong to.
            videos: Videos carrying the values to store.

        Returns:
            Number of rows updated; foreign videos are skipped.
        """
        updated = 0
        with _persistence_errors('update'), transaction.atomic():
            for video in videos:
                updated += Video.objects.filter(
                    id=video.id,
                    user_id=owner_id,
                ).update(path=video.path, url=video.url)
        return updated
