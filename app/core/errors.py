"""
Domain errors raised by the store, the collection and the auth context.

The app maps them onto HTTP status codes; nothing here is fatal to the process.
"""


class FamilyHealthError(Exception):
    """Base class for every error raised by app.core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RemoteError(FamilyHealthError):
    """The remote store (or the network in front of it) failed."""


class NotFoundError(FamilyHealthError):
    pass


class AuthError(FamilyHealthError):
    """The auth provider rejected the request (bad credentials, weak password...)."""


class NotAuthenticatedError(FamilyHealthError):
    def __init__(self, message: str = "Not signed in"):
        super().__init__(message)


class ForbiddenError(FamilyHealthError):
    pass
