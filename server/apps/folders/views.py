"""JSON endpoints for folder lifecycle operations.

Views only translate HTTP to ``FolderLifecycleManager`` calls and typed
errors back to status codes.

The API is session authenticated, so writes are CSRF protected like any
other Django form post. Listing folders sets the ``csrftoken`` cookie;
clients send it back in the ``X-CSRFToken`` header. CSRF failures are
answered in the same JSON error format as everything else.
"""

import json
import logging
from http import HTTPStatus
from typing import Any, Final

from django.core.exceptions import ValidationError
from django.http import HttpRequest, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import ensure_csrf_cookie

from server.apps.folders.exceptions import (
    FolderNotFoundError,
    PersistenceError,
    RemoteExecutionError,
)
from server.apps.folders.infrastructure.paths import OwnerIdentity
from server.apps.folders.logic.catalog import FolderCatalog
from server.apps.folders.logic.folder_lifecycle import (
    FolderLifecycleManager,
    build_folder_lifecycle_manager,
)
from server.apps.folders.models import Folder

logger = logging.getLogger(__name__)

_NAME_FIELD: Final = 'name'


def _error(status: HTTPStatus, error: str, details: str = '') -> JsonResponse:
    return JsonResponse({'error': error, 'details': details}, status=status)


def _serialize_folder(folder: Folder) -> dict[str, Any]:
    return {
        'id': folder.id,
        'name': folder.name,
        'server_id': folder.server_id,
    }


class _FolderView(View):
    """Shared authentication, body parsing and error mapping."""

    def dispatch(
        self,
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Reject anonymous callers and map lifecycle errors.

        Args:
            request: Incoming request.
            args: Positional URL arguments.
            kwargs: Keyword URL arguments.

        Returns:
            JSON response.
        """
        if not request.user.is_authenticated:
            return _error(HTTPStatus.UNAUTHORIZED, 'Authentication required')

        try:
            self.owner_identity = OwnerIdentity.from_user(request.user)
        except ValidationError as exc:
            return _error(
                HTTPStatus.BAD_REQUEST,
                'Invalid account login',
                ' '.join(exc.messages),
            )

        try:
            return super().dispatch(request, *args, **kwargs)
        except ValueError as exc:
            return _error(HTTPStatus.BAD_REQUEST, 'Malformed request', str(exc))
        except ValidationError as exc:
            return _error(
                HTTPStatus.BAD_REQUEST,
                'Invalid folder name',
                ' '.join(exc.messages),
            )
        except FolderNotFoundError:
            return _error(HTTPStatus.NOT_FOUND, 'Folder not found')
        except RemoteExecutionError as exc:
            logger.warning('Media server operation failed: %s', exc)
            return _error(
                HTTPStatus.BAD_GATEWAY,
                'Media server operation failed',
                str(exc),
            )
        except PersistenceError as exc:
            return _error(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                'Folder catalog error',
                str(exc),
            )

    def manager(self) -> FolderLifecycleManager:
        """Lifecycle manager wired to the configured executor."""
        return build_folder_lifecycle_manager()

    def json_body(self) -> dict[str, Any]:
        """Decode the request body as a JSON object.

        Returns:
            Parsed body, empty for an empty request.

        Raises:
            ValueError: If the body is not a JSON object.
        """
        if not self.request.body:
            return {}
        body = json.loads(self.request.body)
        if not isinstance(body, dict):
            raise ValueError('Request body must be a JSON object')
        return body


@method_decorator(ensure_csrf_cookie, name='get')
class FolderCollectionView(_FolderView):
    """List and create folders."""

    def get(self, request: HttpRequest) -> JsonResponse:
        """List the caller's folders."""
        folders = self.manager().list_folders(self.owner_identity)
        return JsonResponse(
            [_serialize_folder(folder) for folder in folders],
            safe=False,
        )

    def post(self, request: HttpRequest) -> JsonResponse:
        """Create a folder on the caller's media server."""
        body = self.json_body()
        owner = self.owner_identity
        server_id = body.get('server_id')
        if server_id is None:
            server_id = FolderCatalog().default_server_id(owner.id)
        elif isinstance(server_id, bool) or not isinstance(server_id, int):
            raise ValueError('server_id must be an integer')

        folder = self.manager().create_folder(
            owner,
            server_id,
            body.get(_NAME_FIELD),
        )
        return JsonResponse(
            _serialize_folder(folder),
            status=HTTPStatus.CREATED,
        )


class FolderDetailView(_FolderView):
    """Rename and delete a single folder."""

    def put(self, request: HttpRequest, folder_id: int) -> JsonResponse:
        """Rename a folder."""
        body = self.json_body()
        rename = self.manager().rename_folder(
            self.owner_identity,
            folder_id,
            body.get(_NAME_FIELD),
        )
        return JsonResponse({
            'id': rename.folder_id,
            'old_name': rename.old_name,
            'new_name': rename.new_name,
            'changed': rename.changed,
        })

    def delete(self, request: HttpRequest, folder_id: int) -> JsonResponse:
        """Delete a folder with its directory and videos."""
        deletion = self.manager().delete_folder(self.owner_identity, folder_id)
        return JsonResponse({
            'id': deletion.folder_id,
            'name': deletion.name,
            'videos_deleted': deletion.videos_deleted,
        })


def csrf_failure(request: HttpRequest, reason: str = '') -> JsonResponse:
    """Answer CSRF rejections in the API's error format.

    Args:
        request: Rejected request.
        reason: Why the CSRF check failed.

    Returns:
        403 JSON response.
    """
    return _error(HTTPStatus.FORBIDDEN, 'CSRF verification failed', reason)
