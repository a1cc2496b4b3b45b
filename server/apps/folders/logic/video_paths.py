"""Keeps stored video locations in step with their folder's name."""

import logging
from typing import final

from server.apps.folders.logic.catalog import FolderCatalog

logger = logging.getLogger(__name__)


@final
class VideoPathRewriter:
    """Rewrites the folder segment embedded in video paths and URLs."""

    def __init__(self, catalog: FolderCatalog) -> None:
        """Initialize rewriter.

        Args:
            catalog: Catalog that reads and writes the video rows.
        """
        self._catalog = catalog

    def rewrite_folder_prefix(
        self,
        owner_id: int,
        folder_id: int,
        old_prefix: str,
        new_prefix: str,
    ) -> int:
        """Replace ``old_prefix`` with ``new_prefix`` in a folder's videos.

        Only the first occurrence in ``path`` and in ``url`` is replaced.
        Videos without the prefix are left alone; an empty folder is a
        no-op.

        Args:
            owner_id: Folder owner.
            folder_id: Folder whose videos to rewrite.
            old_prefix: Segment to replace (e.g., '/bob/alpha/').
            new_prefix: Replacement (e.g., '/bob/beta/').

        Returns:
            Number of videos updated.
        """
        if not old_prefix or old_prefix == new_prefix:
            return 0

        changed = []
        for video in self._catalog.list_content_under_folder(owner_id, folder_id):
            new_path = video.path.replace(old_prefix, new_prefix, 1)
            new_url = video.url.replace(old_prefix, new_prefix, 1)
            if new_path == video.path and new_url == video.url:
                continue
            video.path = new_path
            video.url = new_url
            changed.append(video)

        if not changed:
            logger.debug('No videos to rewrite in folder %d', folder_id)
            return 0

        updated = self._catalog.save_content_paths(owner_id, changed)
        logger.info(
            'Rewrote %d video paths in folder %d: %s -> %s',
            updated,
            folder_id,
            old_prefix,
            new_prefix,
        )
        return updated
