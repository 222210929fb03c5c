"""Shared helpers (filenames, uploader file records)."""
