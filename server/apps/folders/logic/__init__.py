"""Business logic layer for folders app.

This package contains all business logic for folder operations:
- Folder catalog access scoped by owner
- Video path rewriting after a rename
- Create, rename and delete as sagas across catalog and media server

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
