"""Database models for folders app."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_HOST_MAX_LENGTH: Final = 255
_PATH_MAX_LENGTH: Final = 1024
_SSH_PORT: Final = 22


@final
class MediaServer(models.Model):
    """Streaming server that hosts folder directories.

    Only the SSH executor reads these rows; folders reference a server by
    ``server_id`` so the catalog stays usable with any executor backend.
    """

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    host = models.CharField(
        max_length=_HOST_MAX_LENGTH,
        help_text='Hostname or IP address reachable over SSH',
    )

    port = models.PositiveIntegerField(default=_SSH_PORT)

    ssh_user = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        default='root',
    )

    identity_file = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Private key path on the application host (optional)',
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Media Server'  # type: ignore[mutable-override]
        verbose_name_plural = 'Media Servers'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['id']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.name} ({self.ssh_user}@{self.host}:{self.port})'


@final
class Folder(models.Model):
    """Logical folder mapped 1:1 to a directory on a media server.

    The directory lives at ``<content_root>/<owner_login>/<name>``, so
    the name doubles as a path segment.
    """

    class Status(models.IntegerChoices):
        """Folder lifecycle marker."""

        DELETED = 0, 'Deleted'
        ACTIVE = 1, 'Active'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='folders',
        db_index=True,
    )

    server_id = models.PositiveIntegerField(
        db_index=True,
        help_text='Media server hosting the directory',
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    status = models.PositiveSmallIntegerField(
        choices=Status.choices,
        default=Status.ACTIVE,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['id']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['user', 'status'],
                name='folders_user_status_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            # Two active rows must never point at one remote directory
            models.UniqueConstraint(
                fields=['user', 'name'],
                condition=models.Q(status=1),
                name='folders_user_active_name_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username}:{self.name}'

    @property
    def is_active(self) -> bool:
        """Whether the folder is listed to its owner."""
        return self.status == self.Status.ACTIVE


@final
class Video(models.Model):
    """Media file stored inside a folder.

    ``path`` and ``url`` both embed ``/<owner_login>/<folder_name>/``;
    renaming the folder rewrites that segment in place.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='videos',
        db_index=True,
    )

    folder = models.ForeignKey(
        Folder,
        on_delete=models.CASCADE,
        related_name='videos',
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    path = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        help_text='Location on the media server',
    )

    url = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        help_text='Playback URL',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Video'  # type: ignore[mutable-override]
        verbose_name_plural = 'Videos'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['id']

        indexes: ClassVar[list[models.Index]] = [
            models.Index(
                fields=['user', 'folder'],
                name='videos_user_folder_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username}:{self.path}'
