"""Tests for folder models."""

import pytest
from django.db import IntegrityError, transaction

from server.apps.folders.models import Folder, MediaServer


@pytest.mark.django_db
def test_folder_model_str(user):
    """Test Folder __str__ method."""
    folder = Folder.objects.create(user=user, server_id=1, name='clips')

    assert str(folder) == 'bob:clips'


@pytest.mark.django_db
def test_folder_defaults_to_active(user):
    """Test new folders are active."""
    folder = Folder.objects.create(user=user, server_id=1, name='clips')

    assert folder.status == Folder.Status.ACTIVE
    assert folder.is_active


@pytest.mark.django_db
def test_active_names_unique_per_owner(user):
    """Test the database rejects two active folders with one name."""
    Folder.objects.create(user=user, server_id=1, name='clips')

    with pytest.raises(IntegrityError), transaction.atomic():
        Folder.objects.create(user=user, server_id=1, name='clips')


@pytest.mark.django_db
def test_deleted_names_may_repeat(user):
    """Test deleted-status folders do not block a name."""
    Folder.objects.create(
        user=user,
        server_id=1,
        name='clips',
        status=Folder.Status.DELETED,
    )

    folder = Folder.objects.create(user=user, server_id=1, name='clips')

    assert folder.is_active


@pytest.mark.django_db
def test_video_model_str(user, make_folder, make_video):
    """Test Video __str__ method."""
    video = make_video(make_folder(user, 'clips', create_directory=False), 'a.mp4')

    assert str(video) == f'bob:{video.path}'


@pytest.mark.django_db
def test_media_server_str():
    """Test MediaServer __str__ method."""
    server = MediaServer.objects.create(name='wowza-1', host='10.0.0.5')

    assert str(server) == 'wowza-1 (root@10.0.0.5:22)'
