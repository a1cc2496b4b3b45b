"""Django admin configuration for folders app.

Folders are read-only here: changing a name or deleting a row from the
admin would bypass the media server and break the catalog/directory
mapping. Lifecycle changes go through the API.
"""

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest

from server.apps.folders.models import Folder, MediaServer, Video


@admin.register(MediaServer)
class MediaServerAdmin(admin.ModelAdmin[MediaServer]):
    """Admin interface for MediaServer model."""

    list_display = [
        'name',
        'host',
        'port',
        'ssh_user',
        'is_active',
    ]

    list_filter = ['is_active']

    search_fields = [
        'name',
        'host',
    ]


@admin.register(Folder)
class FolderAdmin(admin.ModelAdmin[Folder]):
    """Admin interface for Folder model."""

    list_display = [
        'name',
        'user',
        'server_id',
        'status',
        'video_count',
        'created_at',
    ]

    list_filter = [
        'status',
        'server_id',
    ]

    search_fields = [
        'name',
        'user__username',
        'user__email',
    ]

    readonly_fields = [
        'user',
        'server_id',
        'name',
        'status',
        'created_at',
        'updated_at',
    ]

    def video_count(self, obj: Folder) -> int:
        """Count of videos stored in the folder.

        Args:
            obj: Folder instance.

        Returns:
            Number of videos.
        """
        return obj.videos.count()
    video_count.short_description = 'Videos'  # type: ignore[attr-defined]

    def has_add_permission(self, request: HttpRequest) -> bool:
        """Folders are created through the API only."""
        return False

    def has_delete_permission(
        self,
        request: HttpRequest,
        obj: Folder | None = None,
    ) -> bool:
        """Folders are deleted through the API only."""
        return False

    def get_queryset(self, request: HttpRequest) -> QuerySet[Folder]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user')


@admin.register(Video)
class VideoAdmin(admin.ModelAdmin[Video]):
    """Admin interface for Video model."""

    list_display = [
        'name',
        'user',
        'folder',
        'path',
        'created_at',
    ]

    list_filter = ['user']

    search_fields = [
        'name',
        'path',
        'url',
    ]

    readonly_fields = [
        'path',
        'url',
        'created_at',
    ]

    def get_queryset(self, request: HttpRequest) -> QuerySet[Video]:
        """Optimize queryset with select_related.

        Args:
            request: HTTP request.

        Returns:
            Optimized QuerySet.
        """
        return super().get_queryset(request).select_related('user', 'folder')
