"""Session access for the site-details wizard."""

from site_upload.session.store import InMemorySessionStore, SessionStore

__all__ = ["InMemorySessionStore", "SessionStore"]
