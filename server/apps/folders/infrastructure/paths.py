"""Path rules for folder directories on media servers.

Every remote directory is ``<content_root>/<owner_login>/<folder_name>``
and every stored video path embeds ``/<owner_login>/<folder_name>/``.
Both segments are validated here so that neither can contain a path
separator or a traversal sequence; nothing else in the app builds these
strings by hand.
"""

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Final, final

from django.core.exceptions import ValidationError

_PATH_SEPARATOR: Final = '/'
_SEGMENT_MAX_LENGTH: Final = 255
_RESERVED_SEGMENTS: Final = frozenset(('.', '..'))
_FORBIDDEN_CHARACTERS: Final = re.compile(r'[/\\\x00-\x1f\x7f]')


@final
@dataclass(frozen=True)
class OwnerIdentity:
    """Authenticated folder owner.

    Attributes:
        id: User primary key, used to scope every catalog query.
        login: Directory name of the owner on media servers.
    """

    id: int  # noqa: WPS125
    login: str

    @classmethod
    def from_user(cls, user: Any) -> 'OwnerIdentity':
        """Build identity for a Django user.

        Args:
            user: Authenticated user instance.

        Returns:
            OwnerIdentity with the derived login.
        """
        return cls(id=user.id, login=derive_owner_login(user))


def derive_owner_login(user: Any) -> str:
    """Derive the owner's directory name from their identity.

    The local part of the email is used; owners without an email get
    ``user_<id>``. The result is stable for the owner's lifetime.

    Args:
        user: User with ``id`` and ``email`` attributes.

    Returns:
        Login usable as a single path segment.

    Raises:
        ValidationError: If the derived login is not a safe path segment.
    """
    email = (getattr(user, 'email', '') or '').strip()
    local_part = email.split('@', 1)[0]
    login = local_part or f'user_{user.id}'
    _validate_segment(login, 'Owner login')
    return login


def validate_folder_name(name: str | None) -> str:
    """Validate and normalize a folder name.

    Args:
        name: Raw name from the caller.

    Returns:
        Name with surrounding whitespace removed.

    Raises:
        ValidationError: If the name is empty or unsafe as a path segment.
    """
    if name is not None and not isinstance(name, str):
        raise ValidationError('Folder name must be a string', code='invalid')
    cleaned = (name or '').strip()
    if not cleaned:
        raise ValidationError('Folder name is required', code='required')
    _validate_segment(cleaned, 'Folder name')
    return cleaned


def _validate_segment(segment: str, label: str) -> None:
    if len(segment) > _SEGMENT_MAX_LENGTH:
        raise ValidationError(
            f'{label} must be at most {_SEGMENT_MAX_LENGTH} characters',
            code='max_length',
        )
    if segment in _RESERVED_SEGMENTS:
        raise ValidationError(f'{label} cannot be "{segment}"', code='invalid')
    if _FORBIDDEN_CHARACTERS.search(segment):
        raise ValidationError(
            f'{label} cannot contain slashes or control characters',
            code='invalid',
        )


def remote_base_path(content_root: str, owner_login: str) -> str:
    """Build the owner's base directory.

    Args:
        content_root: Root directory on the media server.
        owner_login: Validated owner login.

    Returns:
        Absolute path (e.g., '/content/bob').
    """
    return str(PurePosixPath(content_root, owner_login))


def remote_folder_path(
    content_root: str,
    owner_login: str,
    folder_name: str,
) -> str:
    """Build a folder's directory.

    Args:
        content_root: Root directory on the media server.
        owner_login: Validated owner login.
        folder_name: Validated folder name.

    Returns:
        Absolute path (e.g., '/content/bob/clips').
    """
    return str(PurePosixPath(content_root, owner_login, folder_name))


def content_prefix(owner_login: str, folder_name: str) -> str:
    """Build the segment that video paths and URLs embed.

    Example: ('bob', 'clips') -> '/bob/clips/'

    Args:
        owner_login: Validated owner login.
        folder_name: Validated folder name.

    Returns:
        Prefix with leading and trailing separators.
    """
    return _PATH_SEPARATOR.join(('', owner_login, folder_name, ''))
