"""Infrastructure layer for folders app.

This package contains integrations with external systems:
- Command executors for remote media servers (local shell, SSH)
- Remote path construction and folder name rules
- Retry policy for transient channel failures

Keep infrastructure concerns separate from business logic.
"""
