"""URL routes for folders app."""

from django.urls import path

from server.apps.folders.views import FolderCollectionView, FolderDetailView

app_name = 'folders'

urlpatterns = [
    path('', FolderCollectionView.as_view(), name='collection'),
    path('<int:folder_id>/', FolderDetailView.as_view(), name='detail'),
]
