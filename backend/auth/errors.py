"""Failures raised by the login and session flow.

None of these are fatal to the process; routes translate them into a
redirect or a ``{"loggedIn": false}`` response.
"""


class AuthError(Exception):
    """Base class for login and session failures."""


class ProviderDenied(AuthError):
    """Google refused the handshake or returned an unusable profile."""


class TokenInvalid(AuthError):
    """Bearer token is malformed, badly signed, or expired."""


class MissingToken(TokenInvalid):
    """No bearer credential was presented."""


class UserNotFound(AuthError):
    """The token subject no longer resolves to a user record."""


class UnrecognizedRole(AuthError):
    """A stored role has no post-login destination."""


class DirectoryWriteConflict(AuthError):
    """A user insert was rejected but the record could not be re-read."""


class AccountDeactivated(AuthError):
    """The user record exists but has been soft-deactivated."""
