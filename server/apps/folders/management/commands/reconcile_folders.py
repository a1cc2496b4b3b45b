"""Management command to compare folder rows with media server directories."""

import logging
from typing import Any

from django.core.management.base import BaseCommand

from server.apps.folders.exceptions import RemoteExecutionError
from server.apps.folders.infrastructure.paths import (
    OwnerIdentity,
    remote_folder_path,
)
from server.apps.folders.infrastructure.remote import (
    folder_exists,
    get_remote_executor,
)
from server.apps.folders.models import Folder

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Report, and optionally recreate, folder directories that are missing."""

    help = 'Check that every active folder has its directory on the media server'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--user',
            type=int,
            default=None,
            help='Only check folders of this user ID',
        )
        parser.add_argument(
            '--repair',
            action='store_true',
            help='Recreate missing directories',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the reconciliation command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        repair = options['repair']
        executor = get_remote_executor()

        folders = Folder.objects.filter(
            status=Folder.Status.ACTIVE,
        ).select_related('user').order_by('id')
        if options['user'] is not None:
            folders = folders.filter(user_id=options['user'])

        checked = 0
        missing = 0
        repaired = 0
        failed = 0

        for folder in folders:
            checked += 1
            owner = OwnerIdentity.from_user(folder.user)
            path = remote_folder_path(
                executor.content_root,
                owner.login,
                folder.name,
            )
            try:
                if folder_exists(executor, folder.server_id, path):
                    continue
                missing += 1
                self.stdout.write(
                    f'Missing: {path} (folder {folder.id}, server {folder.server_id})',
                )
                if repair:
                    executor.create_folder(
                        folder.server_id,
                        owner.login,
                        folder.name,
                    )
                    repaired += 1
                    logger.info('Recreated missing folder directory: %s', path)
            except RemoteExecutionError as exc:
                failed += 1
                self.stderr.write(f'Failed to check folder {folder.id}: {exc}')
                logger.exception('Failed to reconcile folder: %d', folder.id)

        self.stdout.write(
            self.style.SUCCESS(
                f'Checked {checked} folders: {missing} missing, '
                f'{repaired} repaired, {failed} failed',
            ),
        )
