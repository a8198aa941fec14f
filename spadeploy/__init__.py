"""spadeploy - Deploy single-page-app builds to S3 and invalidate CloudFront."""

from .exceptions import (
    SpaDeployConfigError,
    SpaDeployDeleteError,
    SpaDeployError,
    SpaDeployExecutionError,
    SpaDeployGitError,
    SpaDeployInvalidationError,
    SpaDeployListingError,
    SpaDeployScanError,
    SpaDeployUploadError,
)

__version__ = "0.1.0"

__all__ = [
    "SpaDeployError",
    "SpaDeployConfigError",
    "SpaDeployDeleteError",
    "SpaDeployExecutionError",
    "SpaDeployGitError",
    "SpaDeployInvalidationError",
    "SpaDeployListingError",
    "SpaDeployScanError",
    "SpaDeployUploadError",
    "__version__",
]
