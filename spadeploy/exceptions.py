"""Exceptions raised by spadeploy."""

from typing import Optional


class SpaDeployError(Exception):
    """Base exception for all spadeploy errors."""


class SpaDeployConfigError(SpaDeployError):
    """Missing or invalid deploy configuration."""


class SpaDeployScanError(SpaDeployError):
    """A local file could not be read or hashed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class SpaDeployListingError(SpaDeployError):
    """The remote object listing failed or returned a malformed record."""


class SpaDeployExecutionError(SpaDeployError):
    """Applying a plan item against the object store failed."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class SpaDeployUploadError(SpaDeployExecutionError):
    """Uploading an object failed."""


class SpaDeployDeleteError(SpaDeployExecutionError):
    """Deleting an object failed."""


class SpaDeployInvalidationError(SpaDeployError):
    """One or more CDN invalidation requests failed."""

    def __init__(self, message: str, failed_ids: Optional[list[str]] = None):
        super().__init__(message)
        self.failed_ids = failed_ids or []


class SpaDeployGitError(SpaDeployError):
    """Git could not be queried for the working directory."""
