"""Business logic layer for files app.

This package contains all business logic for documents:
- Upload, lookup, download, update and delete
- Slug generation
- Search, pagination and title autocomplete
- Cascades triggered by account deletion and login renames
- Storage reconciliation

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
