"""
Flask CLI commands for publishing assets to the remote storage tiers.

Usage:
    flask --app main upload-assets
    flask --app main upload-assets --samples-only
"""

import logging
from pathlib import Path
from typing import List, Tuple

import click
from flask import current_app
from flask.cli import with_appcontext

from soundpack.application.delivery import PACKAGE_CONTENT_TYPE, PREVIEW_CONTENT_TYPE
from soundpack.config.settings import AppSettings
from soundpack.domain.asset_storage import AssetCatalog, StorageResolver
from soundpack.domain.errors import StorageTierError

logger = logging.getLogger(__name__)


def collect_uploads(
    settings: AppSettings, catalog: AssetCatalog, samples_only: bool = False
) -> List[Tuple[str, Path, str]]:
    """
    List (logical key, local path, content type) for every asset to publish.

    Missing local files are skipped with a warning.
    """
    uploads: List[Tuple[str, Path, str]] = []

    if not samples_only:
        package = Path(settings.local_package_path)
        if package.is_file():
            uploads.append((catalog.package_key, package, PACKAGE_CONTENT_TYPE))
        else:
            logger.warning(f"Package not found at {package}, skipping")

    samples_dir = Path(settings.local_samples_dir)
    for name in catalog.sample_names:
        path = samples_dir / name
        if path.is_file():
            uploads.append((catalog.sample_key(name), path, PREVIEW_CONTENT_TYPE))
        else:
            logger.warning(f"Sample not found at {path}, skipping")

    return uploads


def publish_assets(
    resolver: StorageResolver, uploads: List[Tuple[str, Path, str]]
) -> Tuple[int, int]:
    """
    Upload every asset to every remote tier.

    Returns:
        Tuple of (succeeded, failed) upload counts
    """
    succeeded = failed = 0
    for tier in resolver.remote_tiers:
        for key, path, content_type in uploads:
            try:
                if tier.upload(key, str(path), content_type):
                    succeeded += 1
                    continue
            except StorageTierError as e:
                logger.error(f"Upload failed: {e}")
            failed += 1
    return succeeded, failed


@click.command("upload-assets")
@click.option("--samples-only", is_flag=True, help="Upload preview samples only.")
@with_appcontext
def upload_assets_command(samples_only: bool) -> None:
    """Upload the sound pack and preview samples to remote storage."""
    resolver = current_app.container.resolve(StorageResolver)
    catalog = current_app.container.resolve(AssetCatalog)

    if not resolver.remote_tiers:
        raise click.ClickException("No remote storage tier is configured")

    uploads = collect_uploads(current_app.settings, catalog, samples_only)
    if not uploads:
        raise click.ClickException("Nothing to upload")

    succeeded, failed = publish_assets(resolver, uploads)
    click.echo(f"Uploaded {succeeded} object(s), {failed} failure(s)")
    if failed:
        raise SystemExit(1)


def register_commands(app) -> None:
    app.cli.add_command(upload_assets_command)
