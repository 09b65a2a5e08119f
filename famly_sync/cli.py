#!/usr/bin/env python
"""
Command Line Interface

Usage:
    # Full download
    famly-sync -u parent@example.com -p secret

    # Only what is new since the last completed run
    famly-sync --delta

    # Everything created after a date, without touching file metadata
    famly-sync -ds 2023-01-01 --disable-exif
"""
import sys

import click

from . import create_sync_service
from .api.errors import FamlySyncError
from .config import SyncSettings
from .utils.validators import parse_timestamp, validate_credentials, validate_height_target


def _check_since(value, param_hint=None):
    try:
        parse_timestamp(value)
    except ValueError:
        raise click.BadParameter(
            f"'{value}' is not an ISO-8601 date (e.g. 2023-01-01 or 2023-01-01T12:00:00)",
            param_hint=param_hint,
        )


def _validate_since(ctx, param, value):
    if value is None:
        return None
    _check_since(value)
    return value


def _validate_height(ctx, param, value):
    if value is None:
        return None
    ok, err, height = validate_height_target(value)
    if not ok:
        raise click.BadParameter(err)
    return height


@click.command()
@click.option('-u', '--username', help='Account email (FAMLY_USERNAME).')
@click.option('-p', '--password', help='Account password (FAMLY_PASSWORD).')
@click.option('-df', '--download-folder', 'download_folder', help='Where media is written (FAMLY_DOWNLOAD_FOLDER).')
@click.option('--graphqlurl', 'graphql_url', help='GraphQL endpoint (FAMLY_GRAPHQL_URL).')
@click.option('--api-url', 'api_base_url', help='REST base URL for the feed (FAMLY_API_URL).')
@click.option('-ds', '--download-since', 'download_since', callback=_validate_since,
              help='Only download items created after this ISO-8601 date.')
@click.option('-d', '--delta', is_flag=True,
              help='Only download items newer than the last completed run.')
@click.option('--delta-file', 'delta_file', help='Watermark file used by --delta (FAMLY_DELTA_FILE).')
@click.option('--disable-exif', 'disable_exif', is_flag=True,
              help='Do not write capture dates into downloaded files.')
@click.option('-v', '--verbose', is_flag=True, help='Verbose logging.')
@click.option('-ht', '--height-target', 'height_target', callback=_validate_height,
              help='Feed page size hint (FAMLY_HEIGHT_TARGET).')
@click.option('--max-workers', 'max_workers', type=click.IntRange(min=1),
              help='Concurrent downloads (FAMLY_MAX_WORKERS).')
def main(**options):
    """Download every photo, video and file from the Famly feed."""
    # Unset options and unset flags fall back to the environment
    overrides = {key: value for key, value in options.items() if value is not None and value is not False}
    settings = SyncSettings.from_config(**overrides)

    if settings.download_since:
        # Also covers FAMLY_DOWNLOAD_SINCE
        _check_since(settings.download_since, param_hint="'--download-since' / FAMLY_DOWNLOAD_SINCE")

    ok, err = validate_credentials(settings.username, settings.password)
    if not ok:
        raise click.UsageError(err)

    service = create_sync_service(settings)

    try:
        logs = service.run()
    except FamlySyncError as e:
        click.echo(click.style(f'✗ Sync aborted: {e}', fg='red'), err=True)
        sys.exit(1)

    summary = logs['summary']
    click.echo(click.style('✓ Sync complete', fg='green'))
    click.echo(f"  Pages fetched:     {summary['pages']}")
    click.echo(f"  Files downloaded:  {summary['downloaded']}")
    click.echo(f"  Files tagged:      {summary['tagged']}")
    click.echo(f"  Items skipped:     {summary['skipped']}")
    click.echo(f"  Oldest cursor:     {logs['oldest_cursor']}")

    if summary['failed'] or summary['tag_failed'] or summary['malformed']:
        click.echo(click.style(
            f"⚠ {summary['failed']} download failures, {summary['tag_failed']} tagging failures, "
            f"{summary['malformed']} malformed items",
            fg='yellow'
        ))


if __name__ == '__main__':
    main()
