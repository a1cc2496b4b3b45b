"""Main settings entry point.

Settings are split into components and environments and glued together
with ``django-split-settings``. ``DJANGO_ENV`` picks the environment file.
"""

import django_stubs_ext
from split_settings.tools import include, optional

from server.settings.components import config

# Allows ``admin.ModelAdmin[Folder]`` style generics at runtime
django_stubs_ext.monkeypatch()

ENV = config('DJANGO_ENV', default='development')

_base_settings = (
    'components/common.py',
    'components/logging.py',
    'components/remote.py',
    # Select the right env:
    f'environments/{ENV}.py',
    # Optionally override some settings:
    optional('environments/local.py'),
)

include(*_base_settings)
