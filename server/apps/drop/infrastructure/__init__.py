"""Infrastructure layer for drop app.

This package contains integrations with the local filesystem:
- Storage backend with exclusive, staged writes
- Filename normalization and MIME type detection

Keep infrastructure concerns separate from business logic.
"""
