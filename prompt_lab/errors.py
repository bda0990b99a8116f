"""Workspace exception hierarchy."""


class WorkspaceError(Exception):
    """Base exception for workspace errors."""
    pass


class SessionRequiredError(WorkspaceError):
    """Raised when the workspace is used before a session has opened it."""
    pass


class AlreadyInProgressError(WorkspaceError):
    """Raised when an AI action is started while another one is loading."""
    pass


class CategoryNotFoundError(WorkspaceError):
    """Raised when a category id does not resolve."""
    pass


class CategoryCycleError(WorkspaceError):
    """Raised when a category write would make a category its own ancestor."""
    pass
