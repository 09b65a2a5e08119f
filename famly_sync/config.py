"""
Application configuration
Values are read from the environment (and an optional .env file)
"""
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import load_dotenv

from .utils.logger import get_logger

load_dotenv()

logger = get_logger('config')


def _env_flag(name: str, default: str = '') -> bool:
    """Read a boolean flag from the environment."""
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_number(name: str, default, cast=int, minimum=None):
    """Read a number from the environment.

    Unparseable or out of range values fall back to the default with a warning.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset or invalid
        cast: int or float
        minimum: Smallest accepted value
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default

    try:
        value = cast(raw.strip())
    except ValueError:
        logger.warning(f"[Config] {name}={raw!r} is not a valid number, using {default}")
        return default

    if minimum is not None and value < minimum:
        logger.warning(f"[Config] {name}={raw!r} is below {minimum}, using {default}")
        return default
    return value


class Config:
    """Base configuration"""

    # ==================== Credentials ====================
    USERNAME = os.environ.get('FAMLY_USERNAME')
    PASSWORD = os.environ.get('FAMLY_PASSWORD')

    # ==================== Remote endpoints ====================
    GRAPHQL_URL = os.environ.get('FAMLY_GRAPHQL_URL', 'https://app.famly.co/graphql')
    API_BASE_URL = os.environ.get('FAMLY_API_URL', 'https://app.famly.co')

    # ==================== Storage ====================
    DOWNLOAD_FOLDER = os.environ.get('FAMLY_DOWNLOAD_FOLDER', 'downloads/')
    # Watermark file for delta runs
    DELTA_FILE = os.environ.get('FAMLY_DELTA_FILE', '.famlydownloaderdelta')

    # ==================== Sync selection ====================
    # Explicit since-date takes priority over the delta watermark
    DOWNLOAD_SINCE = os.environ.get('FAMLY_DOWNLOAD_SINCE')
    DELTA = _env_flag('FAMLY_DELTA')

    # ==================== Feed paging ====================
    # Approximate visual height budget per page; higher = fewer requests
    HEIGHT_TARGET = _env_number('FAMLY_HEIGHT_TARGET', 10000, minimum=1)
    OBSERVATION_BATCH_SIZE = _env_number('FAMLY_OBSERVATION_BATCH_SIZE', 100, minimum=1)

    # ==================== Network ====================
    REQUEST_TIMEOUT = _env_number('FAMLY_REQUEST_TIMEOUT', 30.0, cast=float, minimum=0.1)
    MAX_RETRIES = _env_number('FAMLY_MAX_RETRIES', 3, minimum=0)
    RETRY_DELAY = _env_number('FAMLY_RETRY_DELAY', 2.0, cast=float, minimum=0.0)
    RETRY_MAX_DELAY = _env_number('FAMLY_RETRY_MAX_DELAY', 60.0, cast=float, minimum=0.0)

    # ==================== Downloads / tagging ====================
    MAX_WORKERS = _env_number('FAMLY_MAX_WORKERS', 4, minimum=1)
    DISABLE_EXIF = _env_flag('FAMLY_DISABLE_EXIF')
    EXIFTOOL_PATH = os.environ.get('FAMLY_EXIFTOOL', 'exiftool')

    # ==================== Logging ====================
    VERBOSE = _env_flag('FAMLY_VERBOSE')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    @staticmethod
    def init_paths(download_folder: Optional[str] = None):
        """Create the download folder if it does not exist."""
        path = download_folder or Config.DOWNLOAD_FOLDER
        if not os.path.exists(path):
            os.makedirs(path)


class DevelopmentConfig(Config):
    """Development configuration"""
    VERBOSE = True
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    USERNAME = 'parent@example.com'
    PASSWORD = 'secret'
    GRAPHQL_URL = 'https://famly.test/graphql'
    API_BASE_URL = 'https://famly.test'
    DOWNLOAD_SINCE = None
    DELTA = False
    DISABLE_EXIF = True
    MAX_RETRIES = 1
    RETRY_DELAY = 0.0
    REQUEST_TIMEOUT = 5.0


config = {
    'development': DevelopmentConfig,
    'production': Config,
    'testing': TestingConfig,
    'default': Config,
}


def get_config():
    """Return the configuration class selected by FAMLY_ENV."""
    env = os.environ.get('FAMLY_ENV', 'default')
    return config.get(env, config['default'])


@dataclass(frozen=True)
class SyncSettings:
    """Immutable settings for one run, built from a Config class plus overrides."""
    username: Optional[str] = None
    password: Optional[str] = None
    graphql_url: str = Config.GRAPHQL_URL
    api_base_url: str = Config.API_BASE_URL
    download_folder: str = Config.DOWNLOAD_FOLDER
    delta_file: str = Config.DELTA_FILE
    download_since: Optional[str] = None
    delta: bool = False
    height_target: int = 10000
    observation_batch_size: int = 100
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0
    retry_max_delay: float = 60.0
    max_workers: int = 4
    disable_exif: bool = False
    exiftool_path: str = 'exiftool'
    verbose: bool = False
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @classmethod
    def from_config(cls, config_class=None, **overrides) -> 'SyncSettings':
        """
        Build settings from a Config class; non-None overrides win.

        Args:
            config_class: Config class to read defaults from
            **overrides: Field values (usually command line options)

        Returns:
            SyncSettings instance
        """
        if config_class is None:
            config_class = get_config()

        values = {f.name: getattr(config_class, f.name.upper(), f.default) for f in fields(cls)}
        settings = cls(**values)

        unknown = set(overrides) - set(values)
        if unknown:
            raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")

        return settings.with_overrides(**overrides)

    def with_overrides(self, **overrides) -> 'SyncSettings':
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self

    def masked(self) -> dict:
        """Settings as a dict with the password hidden, for verbose logging."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if data.get('password'):
            data['password'] = '***'
        return data
