"""Runtime environment injection into SPA index files."""

import json
import logging
import re
from collections.abc import Mapping
from typing import Optional

import yaml

from ..exceptions import SpaDeployConfigError, SpaDeployScanError
from ..utils import matches_any, md5_bytes
from .plan import CACHE_CONTROL_NO_CACHE, PlanItem, SyncAction, SyncPlan, sort_plan_items

logger = logging.getLogger(__name__)

ENV_SCRIPT_RE = re.compile(r'<script id="env-data">[^<]*</script>')
HEAD_CLOSE = "</head>"
SEMVER_RE = re.compile(r"^[\d.]+$")


def build_env_script(env: Mapping[str, str]) -> str:
    """Build the JavaScript assigning every entry to ``window``.

    Examples:
        >>> build_env_script({"APP_STAGE": "prod", "APP_RELEASE": "abc"})
        "window.APP_STAGE='prod';window.APP_RELEASE='abc'"
    """
    return ";".join(f"window.{key}='{value}'" for key, value in env.items())


def build_env_tag(env: Mapping[str, str]) -> str:
    return f'<script id="env-data">{build_env_script(env)}</script>'


def inject_env(content: str, env: Mapping[str, str], name: str = "") -> Optional[str]:
    """Write the env script into an HTML document.

    The body of an existing ``<script id="env-data">`` block is replaced.
    Without one, the block is inserted before ``</head>``. Injecting the
    same env twice gives the same output.

    Args:
        content: HTML document
        env: Values to expose as ``window.KEY``
        name: File name used in warnings

    Returns:
        The new document, or None if no injection point exists
    """
    tag = build_env_tag(env)
    if ENV_SCRIPT_RE.search(content):
        return ENV_SCRIPT_RE.sub(lambda _: tag, content, count=1)
    if HEAD_CLOSE in content:
        logger.warning(
            f'Could not find <script id="env-data"> in {name}. '
            "Injecting at end of HEAD."
        )
        return content.replace(HEAD_CLOSE, tag + HEAD_CLOSE, 1)
    logger.warning(f"Could not find injection point in {name}")
    return None


def inject_plan(
    plan: SyncPlan,
    index_patterns: list[str],
    env: Mapping[str, str],
    force: bool = False,
) -> list[PlanItem]:
    """Inject the env into every index file of a plan.

    Matching items are switched to the no-cache policy and carry the
    rewritten body in ``data``. An UPDATE whose rewritten body hashes to the
    remote ETag is downgraded to UNCHANGED (unless ``force``).

    Args:
        plan: Plan to post-process (modified in place)
        index_patterns: Globs selecting the index files
        env: Values to inject
        force: Never downgrade updates

    Returns:
        The items that were processed
    """
    processed: list[PlanItem] = []
    if not index_patterns:
        return processed

    for item in plan.items:
        if item.local is None or not matches_any(item.local.match_path, index_patterns):
            continue

        item.cache = False
        item.cache_control = CACHE_CONTROL_NO_CACHE
        processed.append(item)

        try:
            content = item.local.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SpaDeployScanError(
                f"Cannot read {item.local.path}: {e}", path=str(item.local.path)
            ) from e

        injected = inject_env(content, env, name=item.key)
        if injected is None:
            continue

        item.data = injected.encode("utf-8")
        item.data_hash = md5_bytes(item.data)

        if (
            not force
            and item.action == SyncAction.UPDATE
            and item.remote is not None
            and item.remote.etag == item.data_hash
        ):
            logger.debug(f"{item.key} matches the deployed version after injection")
            item.action = SyncAction.UNCHANGED
            item.invalidate = False

    plan.items = sort_plan_items(plan.items)
    return processed


def build_app_env(
    globals_: Optional[Mapping[str, str]],
    stage: Optional[str],
    version: Optional[str],
    release: str,
) -> dict[str, str]:
    """Build the values injected into index files.

    The version defaults to ``<stage>-<release>``; a bare numeric version
    such as ``1.2.3`` is prefixed with the stage.

    Examples:
        >>> build_app_env({}, "prod", "1.2.3", "abc")
        {'APP_STAGE': 'prod', 'APP_VERSION': 'prod-1.2.3', 'APP_RELEASE': 'abc'}
    """
    stage = stage or ""
    if not version:
        version = f"{stage}-{release}"
    elif SEMVER_RE.match(version):
        version = f"{stage}-{version}"

    env = dict(globals_ or {})
    env["APP_STAGE"] = stage
    env["APP_VERSION"] = version
    env["APP_RELEASE"] = release
    return env


def render_env_file(file_name: str, env: Mapping[str, str]) -> str:
    """Render the env for a config file, chosen by its name.

    ``.json``, ``.yml``/``.yaml`` and dotenv (``.env``, ``.env.*``) files are
    supported.

    Raises:
        SpaDeployConfigError: For an unsupported file type
    """
    if file_name.endswith(".json"):
        return json.dumps(dict(env), indent=2)
    if file_name.endswith((".yml", ".yaml")):
        return yaml.safe_dump(dict(env), default_flow_style=False, sort_keys=False)
    if file_name.endswith(".env") or file_name.startswith(".env"):
        return "\n".join(f"{key}={value}" for key, value in env.items())
    raise SpaDeployConfigError(f"Unknown destination file type: {file_name}")
