"""Storage layer for console records.

This package persists named record collections under the data root.
It powers CRUD, typed entity access, and backups for the SDK.
"""
