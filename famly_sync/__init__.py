"""
Sync Service Factory

This module creates and configures a ready-to-run SyncService.
"""
from .config import Config, SyncSettings, get_config
from .utils.logger import setup_logger, get_logger

__version__ = '1.0.0'


def create_sync_service(settings: SyncSettings = None, config_class=None, **overrides):
    """Create and configure a sync run.

    Args:
        settings: Fully built settings. If None, built from config_class plus overrides.
        config_class: Configuration class to use. If None, auto-detect from environment.
        **overrides: Individual settings (None values are ignored)

    Returns:
        Configured SyncService instance
    """
    from .services.sync_service import SyncService

    if settings is None:
        if config_class is None:
            config_class = get_config()
        settings = SyncSettings.from_config(config_class, **overrides)

    # Initialize logging
    setup_logger(
        log_level='DEBUG' if settings.verbose else settings.log_level,
        log_file=settings.log_file
    )

    logger = get_logger('app')
    logger.info(f"Sync initialized, download folder: {settings.download_folder}")

    return SyncService(settings)


__all__ = ['create_sync_service', 'Config', 'SyncSettings', 'get_config', '__version__']
