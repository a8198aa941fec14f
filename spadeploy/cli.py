"""CLI interface for spadeploy."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .cdn import execute_invalidation, plan_invalidations
from .clients import create_cloudfront_client, create_s3_client
from .config import (
    DEFAULT_CONFIG_FILE,
    DeployConfig,
    DeployTarget,
    S3Config,
    load_config,
)
from .exceptions import SpaDeployError, SpaDeployGitError
from .git import get_git_changes, get_git_sha
from .output import OutputFormatter
from .sync import (
    DirectoryScanner,
    SyncAction,
    SyncEngine,
    SyncOptions,
    SyncPlan,
    build_app_env,
    build_sync_plan,
    format_plan_item,
    inject_plan,
    render_env_file,
    scan_remote,
    summarize_plan,
    visible_items,
)
from .utils import format_size

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_CONFIG_FILE,
    help=f"Config file, relative to --pwd (default: {DEFAULT_CONFIG_FILE})",
)
@click.option(
    "--pwd",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Project directory",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    envvar="VERBOSE",
    help="Show unchanged files and enable debug logging",
)
@click.version_option(__version__)
@click.pass_context
def main(
    ctx: Any, config_path: str, pwd: str, quiet: bool, verbose: bool
) -> None:
    """spa-deploy - Deploy single-page-app builds to S3 and CloudFront."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(quiet=quiet)
    ctx.obj["pwd"] = Path(pwd).resolve()
    ctx.obj["config_path"] = ctx.obj["pwd"] / config_path
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("spadeploy").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _load_config(ctx: Any) -> DeployConfig:
    out: OutputFormatter = ctx.obj["out"]
    try:
        return load_config(ctx.obj["config_path"])
    except SpaDeployError as e:
        out.error(str(e))
        ctx.exit(1)
        raise  # Unreachable, but helps type checker


def _check_git(ctx: Any, pwd: Path, ignore_git_changes: bool) -> None:
    """Exit if the working tree has uncommitted changes."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        changes = get_git_changes(pwd)
    except SpaDeployGitError as e:
        if ignore_git_changes:
            out.warning(f"Error detecting Git: {e}")
            return
        out.error(f"Error detecting Git: {e}")
        ctx.exit(1)
        return

    if not changes:
        return
    if ignore_git_changes:
        out.warning("Changes detected in .git")
        return
    out.banner("Detected Changes in Git - Stage must be clean to deploy!")
    out.print(changes)
    ctx.exit(1)


def _resolve_release(ctx: Any, pwd: Path, release: Optional[str]) -> str:
    if release:
        return release
    out: OutputFormatter = ctx.obj["out"]
    try:
        return get_git_sha(pwd)
    except SpaDeployGitError as e:
        out.error(f"Release is not set and could not be read from git: {e}")
        ctx.exit(1)
        raise  # Unreachable, but helps type checker


def _print_plan(out: OutputFormatter, plan: SyncPlan, verbose: bool) -> None:
    out.banner("S3 Sync Plan")
    for item in visible_items(plan, verbose):
        out.print_plan_line(item.action.label, format_plan_item(item))
    counts = summarize_plan(plan)
    out.print(", ".join(f"{label}: {n}" for label, n in counts.items() if n))


def _build_plan(
    out: OutputFormatter,
    build_path: Path,
    target: DeployTarget,
    s3: S3Config,
    options: SyncOptions,
    region: str,
    endpoint: Optional[str],
) -> SyncPlan:
    client = create_s3_client(region, endpoint)
    scanner = DirectoryScanner(
        include_patterns=target.include_glob,
        ignore_patterns=target.ignore_glob,
        prefix=s3.prefix,
    )
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        disable=out.quiet,
    ) as progress:
        task = progress.add_task("Scanning local and remote files...", total=None)
        plan = build_sync_plan(
            scanner.scan_local(build_path),
            scan_remote(client, s3.bucket, s3.prefix),
            options,
            region=region,
            bucket=s3.bucket,
            endpoint=endpoint,
        )
        progress.update(task, description=f"Planned {len(plan.items)} file(s)")
    return plan


def _deploy_target(  # noqa: C901
    ctx: Any,
    config: DeployConfig,
    target: DeployTarget,
    env: dict[str, str],
    purge: bool,
    force: bool,
    ci: bool,
    dry_run: bool,
    workers: int,
) -> None:
    out: OutputFormatter = ctx.obj["out"]
    pwd: Path = ctx.obj["pwd"]
    verbose: bool = ctx.obj["verbose"]

    out.info(f"Deploying {target.name or ''}...")

    build_path = pwd / target.build_path
    out.variable("build_path", build_path)
    if not build_path.is_dir():
        out.error(f"Build path {build_path} is not a directory.")
        ctx.exit(1)

    s3 = target.s3
    if s3 is None:
        out.error("S3 Deploy Bucket is not set")
        ctx.exit(1)
        return

    region = target.resolve_region(config)
    if not region:
        out.error("AWS Region is not set")
        ctx.exit(1)
        return
    out.variable("s3.region", region)
    out.variable("s3.bucket", s3.bucket)
    endpoint = target.resolve_endpoint(config)
    if endpoint:
        out.variable("s3.endpoint", endpoint)
    if s3.prefix:
        out.variable("s3.prefix", s3.prefix)

    options = SyncOptions(
        purge=s3.purge or purge,
        force=s3.force or force,
        invalidate_patterns=s3.invalidate_glob,
        acl=s3.acl,
    )
    plan = _build_plan(out, build_path, target, s3, options, region, endpoint)

    if target.index_glob:
        out.banner("App Environment")
        for key, value in env.items():
            out.variable(key, value)
        inject_plan(plan, target.index_glob, env, force=options.force)

    _print_plan(out, plan, verbose)

    cloudfront = target.cloudfront
    distribution_ids = cloudfront.distribution_ids if cloudfront else []
    invalidations = (
        plan_invalidations(plan, cloudfront.invalidate_paths) if cloudfront else []
    )
    if invalidations:
        out.banner("CloudFront invalidations")
        for path in invalidations:
            out.print(path)
        if not distribution_ids:
            out.warning("No CloudFront distribution set - will not invalidate cache!")

    if not plan.has_changes:
        out.info("Nothing to do!")
        return

    if dry_run:
        out.info("Dry run: No changes will be made")
        return

    if not ci and not click.confirm("Deploy these changes?", default=True):
        out.info("Canceled")
        return

    upload_bytes = sum(
        item.size for item in plan.changed_items if item.action != SyncAction.DELETE
    )
    out.banner("Deploy")
    engine = SyncEngine(create_s3_client(region, endpoint), out)
    stats = engine.execute_plan(plan, max_workers=workers)

    if cloudfront is not None and invalidations and distribution_ids:
        cf_region = target.resolve_cloudfront_region(config) or region
        cf_client = create_cloudfront_client(cf_region, cloudfront.endpoint)
        for result in execute_invalidation(cf_client, invalidations, distribution_ids):
            out.info(f"Invalidation {result.invalidation_id} created for {result.distribution_id}")

    out.print_summary(
        "Deploy Complete",
        [
            ("Bucket", plan.bucket),
            ("Uploaded", f"{stats['uploaded']} ({format_size(upload_bytes)})"),
            ("Deleted", str(stats["deleted"])),
            ("Invalidated paths", str(len(invalidations) if distribution_ids else 0)),
        ],
    )


@main.command()
@click.option("--target", "-t", help="Deploy only the target with this name")
@click.option("--stage", envvar="STAGE", help="Stage name injected as APP_STAGE")
@click.option(
    "--release",
    envvar=["RELEASE", "CIRCLE_SHA1", "BITBUCKET_COMMIT", "GITHUB_SHA"],
    help="Release id (default: git HEAD sha)",
)
@click.option(
    "--app-version",
    envvar=["APP_VERSION", "CIRCLE_TAG", "BITBUCKET_TAG"],
    help="App version (default: <stage>-<release>)",
)
@click.option("--purge", is_flag=True, help="Remove all unknown files from S3")
@click.option("--force", is_flag=True, help="Replace all files even if not changed")
@click.option("--ci", is_flag=True, envvar="CI", help="Do not ask for confirmation")
@click.option(
    "--ignore-git-changes",
    is_flag=True,
    envvar="IGNORE_GIT_CHANGES",
    help="Deploy even with uncommitted changes",
)
@click.option("--dry-run", is_flag=True, help="Show the plan without deploying")
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=1, max=64),
    default=1,
    help="Number of parallel upload workers (default: 1)",
)
@click.pass_context
def deploy(
    ctx: Any,
    target: Optional[str],
    stage: Optional[str],
    release: Optional[str],
    app_version: Optional[str],
    purge: bool,
    force: bool,
    ci: bool,
    ignore_git_changes: bool,
    dry_run: bool,
    workers: int,
) -> None:
    """Deploy the build directory to S3 and invalidate CloudFront.

    Examples:
        spa-deploy deploy --stage prod            # Interactive deploy
        spa-deploy deploy --ci --purge            # Remove unknown files too
        spa-deploy deploy --dry-run -v            # Show the full plan
    """
    out: OutputFormatter = ctx.obj["out"]
    pwd: Path = ctx.obj["pwd"]

    config = _load_config(ctx)
    try:
        targets = config.get_targets(target)
    except SpaDeployError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    if not targets:
        out.error("No deploy targets configured")
        ctx.exit(1)

    if not ci:
        out.info("Running Interactively")

    _check_git(ctx, pwd, ignore_git_changes)
    release = _resolve_release(ctx, pwd, release)
    env = build_app_env(config.globals, stage, app_version, release)

    try:
        for deploy_target in targets:
            _deploy_target(
                ctx, config, deploy_target, env, purge, force, ci, dry_run, workers
            )
    except SpaDeployError as e:
        out.error(str(e))
        ctx.exit(1)

    out.success("Done!")


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--distribution-id",
    "-d",
    "distribution_ids",
    multiple=True,
    required=True,
    help="CloudFront distribution id (repeatable)",
)
@click.option("--region", default="us-east-1", show_default=True, help="AWS region")
@click.option("--endpoint", help="CloudFront endpoint override")
@click.pass_context
def invalidate(
    ctx: Any,
    paths: tuple[str, ...],
    distribution_ids: tuple[str, ...],
    region: str,
    endpoint: Optional[str],
) -> None:
    """Invalidate PATHS on one or more CloudFront distributions.

    Examples:
        spa-deploy invalidate -d E123 /index.html /manifest.json
        spa-deploy invalidate -d E123 -d E456 "/*"
    """
    out: OutputFormatter = ctx.obj["out"]
    client = create_cloudfront_client(region, endpoint)
    try:
        results = execute_invalidation(client, list(paths), distribution_ids)
    except SpaDeployError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    for result in results:
        out.success(f"Invalidation {result.invalidation_id} created for {result.distribution_id}")


@main.command()
@click.argument("destination", type=click.Path(dir_okay=False))
@click.option("--stage", envvar="STAGE", help="Stage name")
@click.option(
    "--release",
    envvar=["RELEASE", "CIRCLE_SHA1", "BITBUCKET_COMMIT", "GITHUB_SHA"],
    help="Release id (default: git HEAD sha)",
)
@click.option(
    "--app-version",
    envvar=["APP_VERSION", "CIRCLE_TAG", "BITBUCKET_TAG"],
    help="App version",
)
@click.pass_context
def inject(
    ctx: Any,
    destination: str,
    stage: Optional[str],
    release: Optional[str],
    app_version: Optional[str],
) -> None:
    """Write the app environment to DESTINATION (.json, .yml or .env file).

    Examples:
        spa-deploy inject public/env.json --stage prod
        spa-deploy inject .env.production --release abc123
    """
    out: OutputFormatter = ctx.obj["out"]
    pwd: Path = ctx.obj["pwd"]

    config = _load_config(ctx)
    release = _resolve_release(ctx, pwd, release)
    env = build_app_env(config.globals, stage, app_version, release)

    output_path = pwd / destination
    try:
        content = render_env_file(output_path.name, env)
    except SpaDeployError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    out.info(f"Writing {output_path}")
    output_path.write_text(content, encoding="utf-8")


if __name__ == "__main__":
    main()
