"""Overrides for local development.

Folders are created under a directory of the checkout instead of a
remote media server.
"""

from server.settings.components import BASE_DIR, config
from server.settings.components.remote import (
    FOLDERS_REMOTE_RETRIES,
    FOLDERS_REMOTE_RETRY_DELAY,
    FOLDERS_REMOTE_TIMEOUT,
)

DEBUG = True

ALLOWED_HOSTS = [
    'localhost',
    '127.0.0.1',
    '[::1]',
    'testserver',
]

FOLDERS_CONTENT_ROOT = config(
    'FOLDERS_CONTENT_ROOT',
    default=str(BASE_DIR.joinpath('content')),
)

FOLDERS_REMOTE_EXECUTOR = {
    'BACKEND': 'server.apps.folders.infrastructure.remote.LocalShellExecutor',
    'OPTIONS': {
        'content_root': FOLDERS_CONTENT_ROOT,
        'timeout': FOLDERS_REMOTE_TIMEOUT,
        'retries': FOLDERS_REMOTE_RETRIES,
        'retry_delay': FOLDERS_REMOTE_RETRY_DELAY,
    },
}
