"""Remote media server settings.

Folders live as directories on media servers that are only reachable
through a command channel. The executor backend is chosen the same way
Django chooses storage backends: a dotted path plus constructor options.
"""

from typing import Any, Final

from server.settings.components import config

# Root directory that holds ``<owner_login>/<folder_name>`` on every server
FOLDERS_CONTENT_ROOT = config(
    'FOLDERS_CONTENT_ROOT',
    default='/usr/local/WowzaStreamingEngine/content',
)

# Server used when an owner has no folders yet
FOLDERS_DEFAULT_SERVER_ID = config(
    'FOLDERS_DEFAULT_SERVER_ID',
    cast=int,
    default=1,
)

# Seconds a single remote command may take
FOLDERS_REMOTE_TIMEOUT = config('FOLDERS_REMOTE_TIMEOUT', cast=float, default=30)

# Extra attempts on transient (connection/timeout) failures
FOLDERS_REMOTE_RETRIES = config('FOLDERS_REMOTE_RETRIES', cast=int, default=2)

# Initial backoff between attempts, doubled after each failure
FOLDERS_REMOTE_RETRY_DELAY = config(
    'FOLDERS_REMOTE_RETRY_DELAY',
    cast=float,
    default=0.5,
)

FOLDERS_REMOTE_EXECUTOR: Final[dict[str, Any]] = {
    'BACKEND': 'server.apps.folders.infrastructure.remote.SSHShellExecutor',
    'OPTIONS': {
        'content_root': FOLDERS_CONTENT_ROOT,
        'timeout': FOLDERS_REMOTE_TIMEOUT,
        'retries': FOLDERS_REMOTE_RETRIES,
        'retry_delay': FOLDERS_REMOTE_RETRY_DELAY,
        'connect_timeout': config(
            'FOLDERS_SSH_CONNECT_TIMEOUT',
            cast=int,
            default=10,
        ),
    },
}
