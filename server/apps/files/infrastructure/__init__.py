"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Filesystem blob storage keyed by document type
- Metadata extraction (MIME type, extension, size)

Keep infrastructure concerns separate from business logic.
"""
