"""Deploy configuration loaded from a TOML file.

Example ``spa-deploy.toml``::

    region = "eu-west-1"

    [globals]
    API_URL = "https://api.example.com"

    [[deploy]]
    name = "app"
    build_path = "dist"
    index_glob = "index.html"

    [deploy.s3]
    bucket = "my-app-bucket"
    invalidate_glob = ["index.html", "manifest.json"]

    [deploy.cloudfront]
    distribution_id = "E123456789"
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .exceptions import SpaDeployConfigError
from .utils import to_list

DEFAULT_CONFIG_FILE = "spa-deploy.toml"
DEFAULT_BUILD_PATH = "dist"


@dataclass
class S3Config:
    """Target bucket and sync behavior."""

    bucket: str
    region: Optional[str] = None
    prefix: Optional[str] = None
    endpoint: Optional[str] = None
    force: bool = False
    purge: bool = False
    invalidate_glob: list[str] = field(default_factory=list)
    """Keys that are never long-cached and are invalidated when they change"""
    acl: Optional[str] = None


@dataclass
class CloudFrontConfig:
    """CDN distributions to invalidate after a deploy."""

    distribution_ids: list[str] = field(default_factory=list)
    invalidate_paths: list[str] = field(default_factory=list)
    """Extra paths (e.g. ``/*``) added to every invalidation batch"""
    region: Optional[str] = None
    endpoint: Optional[str] = None


@dataclass
class DeployTarget:
    """A single build directory deployed to a single bucket."""

    name: Optional[str] = None
    build_path: str = DEFAULT_BUILD_PATH
    include_glob: list[str] = field(default_factory=list)
    ignore_glob: list[str] = field(default_factory=list)
    index_glob: list[str] = field(default_factory=list)
    s3: Optional[S3Config] = None
    cloudfront: Optional[CloudFrontConfig] = None

    def resolve_region(self, config: "DeployConfig") -> Optional[str]:
        """Region of the bucket, falling back to the top-level region."""
        if self.s3 and self.s3.region:
            return self.s3.region
        return config.region

    def resolve_endpoint(self, config: "DeployConfig") -> Optional[str]:
        """S3 endpoint override, falling back to the top-level endpoint."""
        if self.s3 and self.s3.endpoint:
            return self.s3.endpoint
        return config.endpoint

    def resolve_cloudfront_region(self, config: "DeployConfig") -> Optional[str]:
        if self.cloudfront and self.cloudfront.region:
            return self.cloudfront.region
        return self.resolve_region(config)


@dataclass
class DeployConfig:
    """Top-level configuration: shared settings plus deploy targets."""

    targets: list[DeployTarget] = field(default_factory=list)
    region: Optional[str] = None
    endpoint: Optional[str] = None
    globals: dict[str, str] = field(default_factory=dict)
    """Values injected into index files as ``window.KEY``"""

    def get_targets(self, name: Optional[str] = None) -> list[DeployTarget]:
        """Return all targets, or only the one called ``name``."""
        if name is None:
            return list(self.targets)
        targets = [t for t in self.targets if t.name == name]
        if not targets:
            raise SpaDeployConfigError(f"Unknown deploy target: {name}")
        return targets


def _get_str(data: dict[str, Any], key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise SpaDeployConfigError(f"{where}.{key} must be a string")
    return value


def _get_bool(data: dict[str, Any], key: str, where: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise SpaDeployConfigError(f"{where}.{key} must be a boolean")
    return value


def _get_list(data: dict[str, Any], key: str, where: str) -> list[str]:
    try:
        return to_list(data.get(key))
    except TypeError as e:
        raise SpaDeployConfigError(f"{where}.{key}: {e}") from e


def _parse_s3(data: Any, where: str) -> S3Config:
    if not isinstance(data, dict):
        raise SpaDeployConfigError(f"{where} must be a table")
    bucket = _get_str(data, "bucket", where)
    if not bucket:
        raise SpaDeployConfigError(f"{where}.bucket is not set")
    return S3Config(
        bucket=bucket,
        region=_get_str(data, "region", where),
        prefix=_get_str(data, "prefix", where),
        endpoint=_get_str(data, "endpoint", where),
        force=_get_bool(data, "force", where),
        purge=_get_bool(data, "purge", where),
        invalidate_glob=_get_list(data, "invalidate_glob", where),
        acl=_get_str(data, "acl", where),
    )


def _parse_cloudfront(data: Any, where: str) -> CloudFrontConfig:
    if not isinstance(data, dict):
        raise SpaDeployConfigError(f"{where} must be a table")
    return CloudFrontConfig(
        distribution_ids=_get_list(data, "distribution_id", where),
        invalidate_paths=_get_list(data, "invalidate_paths", where),
        region=_get_str(data, "region", where),
        endpoint=_get_str(data, "endpoint", where),
    )


def _parse_target(data: Any, where: str) -> DeployTarget:
    if not isinstance(data, dict):
        raise SpaDeployConfigError(f"{where} must be a table")
    target = DeployTarget(
        name=_get_str(data, "name", where),
        build_path=_get_str(data, "build_path", where) or DEFAULT_BUILD_PATH,
        include_glob=_get_list(data, "include_glob", where),
        ignore_glob=_get_list(data, "ignore_glob", where),
        index_glob=_get_list(data, "index_glob", where),
    )
    if "s3" in data:
        target.s3 = _parse_s3(data["s3"], f"{where}.s3")
    if "cloudfront" in data:
        target.cloudfront = _parse_cloudfront(data["cloudfront"], f"{where}.cloudfront")
    return target


def parse_config(data: dict[str, Any]) -> DeployConfig:
    """Build a DeployConfig from already-parsed TOML data.

    Args:
        data: Parsed TOML document

    Returns:
        DeployConfig instance

    Raises:
        SpaDeployConfigError: If a value has the wrong type or is missing
    """
    raw_targets = data.get("deploy", [])
    if isinstance(raw_targets, dict):
        raw_targets = [raw_targets]
    if not isinstance(raw_targets, list):
        raise SpaDeployConfigError("deploy must be a table or an array of tables")

    raw_globals = data.get("globals", {})
    if not isinstance(raw_globals, dict):
        raise SpaDeployConfigError("globals must be a table")

    return DeployConfig(
        targets=[
            _parse_target(t, f"deploy[{i}]") for i, t in enumerate(raw_targets)
        ],
        region=_get_str(data, "region", "config"),
        endpoint=_get_str(data, "endpoint", "config"),
        globals={str(k): str(v) for k, v in raw_globals.items()},
    )


def load_config(path: Path) -> DeployConfig:
    """Load the deploy configuration file.

    Args:
        path: Path to a TOML config file

    Returns:
        DeployConfig instance

    Raises:
        SpaDeployConfigError: If the file is missing or invalid
    """
    if not path.is_file():
        raise SpaDeployConfigError(f"Config file not found: {path}")
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        raise SpaDeployConfigError(f"Invalid config file {path}: {e}") from e
    return parse_config(data)
