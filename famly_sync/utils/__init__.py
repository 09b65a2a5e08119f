"""
Utility helpers
"""
from .validators import (
    parse_timestamp,
    try_parse_timestamp,
    format_timestamp,
    format_cursor,
    encode_cursor,
    format_exif_date,
    validate_height_target,
    validate_credentials,
)
from .logger import setup_logger, get_logger

__all__ = [
    'parse_timestamp',
    'try_parse_timestamp',
    'format_timestamp',
    'format_cursor',
    'encode_cursor',
    'format_exif_date',
    'validate_height_target',
    'validate_credentials',
    'setup_logger',
    'get_logger',
]
