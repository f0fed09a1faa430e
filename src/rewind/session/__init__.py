"""Session subpackage: identity, tags and breadcrumbs for the current recording."""

from rewind.session.state import DEFAULT_BREADCRUMB_LIMIT, SessionState

__all__ = ["DEFAULT_BREADCRUMB_LIMIT", "SessionState"]
