"""Exceptions for catpoint."""


class CatpointError(Exception):
    """Base exception for catpoint errors."""


class CatpointInvalidParameterError(CatpointError):
    """Invalid parameter provided."""


class CatpointRepositoryError(CatpointError):
    """Security repository could not read or write its state."""


class CatpointConfigError(CatpointError):
    """Malformed configuration or persisted data."""
