"""Exceptions."""


class InvalidToken(RuntimeError):
    """Token is malformed, has a bad signature, or has expired."""


class InvalidCredentials(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class RevocationFailed(RuntimeError):
    """Failed to record a revoked token in the revocation store."""


class ConfigurationError(RuntimeError):
    """The application is missing required auth configuration."""
