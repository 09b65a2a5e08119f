"""
Media Reference Extractor - Map raw media descriptors to MediaReferences

Pure functions, one rule per media shape. Inline feed media and
observation media use different field layouts and are handled separately.

Filenames keep an upstream identifier (image id, or the original basename)
next to the capture timestamp so items sharing a timestamp do not collide.
"""
from typing import Any, Dict, List, Optional

from ...models import InlineMedia, MediaKind, MediaReference
from ...utils.logger import get_logger

logger = get_logger('extractor')

# First match wins
IMAGE_SUFFIXES = ('.jpg', '.png')
DEFAULT_IMAGE_SUFFIX = '.png'


def infer_image_suffix(key: str) -> str:
    """Pick a file suffix by substring match on the image key, defaulting to .png."""
    for suffix in IMAGE_SUFFIXES:
        if suffix in (key or ''):
            return suffix
    logger.warning(f"Key doesn't contain .jpg or .png, saving as {DEFAULT_IMAGE_SUFFIX}: {key}")
    return DEFAULT_IMAGE_SUFFIX


def strip_query(url: str) -> str:
    return url.split('?', 1)[0]


def url_basename(url: str) -> str:
    """Last path segment of a URL, ignoring any query string."""
    path = strip_query(url)
    return path[path.rfind('/') + 1:]


def safe_filename(name: str) -> str:
    """Keep derived names inside the download folder."""
    return name.replace('/', '_').replace('\\', '_')


def _require(descriptor: Dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if descriptor.get(k) in (None, '')]
    if missing:
        raise ValueError(f"media descriptor missing {', '.join(missing)}")


def inline_image_reference(image: Dict[str, Any], fallback_created: Optional[str] = None) -> MediaReference:
    """Image embedded in a feed item: ``prefix/WxH/key``."""
    _require(image, 'imageId', 'prefix', 'key', 'width', 'height')

    created_raw = ((image.get('createdAt') or {}).get('date')) or fallback_created
    if not created_raw:
        raise ValueError(f"image {image.get('imageId')} has no createdAt")

    key = image['key']
    filename = f"{created_raw.replace(' ', '_')}_{image['imageId']}{infer_image_suffix(key)}"

    return MediaReference(
        kind=MediaKind.IMAGE,
        source_url=f"{image['prefix']}/{image['width']}x{image['height']}/{key}",
        suggested_filename=safe_filename(filename),
        captured_at=created_raw,
    )


def observation_image_reference(image: Dict[str, Any], created_at: str) -> MediaReference:
    """Image attached to an observation: ``prefix/key/WxH/path?expires=...``."""
    _require(image, 'width', 'height')
    secret = image.get('secret') or {}
    _require(secret, 'prefix', 'key', 'path')

    path = secret['path']
    url = (
        f"{secret['prefix']}/{secret['key']}/{image['width']}x{image['height']}/"
        f"{path}?expires={secret.get('expires', '')}"
    )

    return MediaReference(
        kind=MediaKind.IMAGE,
        source_url=url,
        suggested_filename=safe_filename(f"{created_at}_{url_basename(path)}"),
        captured_at=created_at,
    )


def video_reference(video: Dict[str, Any], created_at: str) -> MediaReference:
    """
    Video from either shape. The filename uses the query-stripped URL; the
    download keeps the query because it carries the access signature.
    """
    _require(video, 'videoUrl')
    url = video['videoUrl']

    return MediaReference(
        kind=MediaKind.VIDEO,
        source_url=url,
        suggested_filename=safe_filename(f"{created_at}_{url_basename(url)}"),
        captured_at=created_at,
    )


def file_reference(file: Dict[str, Any], created_date: str) -> MediaReference:
    """Document attachment: ``Document.pdf`` becomes ``Document_<createdDate>.pdf``."""
    _require(file, 'filename', 'url')
    name = file['filename']

    stem, dot, extension = name.rpartition('.')
    if dot and stem:
        filename = f"{stem}_{created_date}.{extension}"
    else:
        filename = f"{name}_{created_date}"

    return MediaReference(
        kind=MediaKind.FILE,
        source_url=file['url'],
        suggested_filename=safe_filename(filename),
        captured_at=created_date,
    )


def extract_inline(item: InlineMedia, issues: Optional[List[str]] = None) -> List[MediaReference]:
    """
    All media references embedded in one feed item.

    Args:
        item: Inline feed item
        issues: Optional list collecting one message per malformed descriptor

    Returns:
        Videos, then images, then files, in upstream order
    """
    refs: List[MediaReference] = []
    rules = (
        [(video_reference, v, item.created_date) for v in item.videos]
        + [(inline_image_reference, i, item.created_date) for i in item.images]
        + [(file_reference, f, item.created_date) for f in item.files]
    )

    for rule, descriptor, created in rules:
        try:
            refs.append(rule(descriptor, created))
        except ValueError as e:
            message = f"feed item {item.feed_item_id}: {e}"
            logger.warning(f"Skipping media, {message}")
            if issues is not None:
                issues.append(message)

    return refs


def extract_observation(observation: Dict[str, Any], issues: Optional[List[str]] = None) -> List[MediaReference]:
    """
    Media references of one resolved observation: zero or more images and
    at most one video. Videos still transcoding carry no URL and are skipped.
    """
    observation_id = observation.get('id')
    created_at = (observation.get('status') or {}).get('createdAt')
    if not created_at:
        message = f"observation {observation_id}: no status.createdAt"
        logger.warning(f"Skipping observation, {message}")
        if issues is not None:
            issues.append(message)
        return []

    refs: List[MediaReference] = []
    for image in observation.get('images') or []:
        try:
            refs.append(observation_image_reference(image, created_at))
        except ValueError as e:
            message = f"observation {observation_id}: {e}"
            logger.warning(f"Skipping media, {message}")
            if issues is not None:
                issues.append(message)

    video = observation.get('video')
    if video and video.get('videoUrl'):
        refs.append(video_reference(video, created_at))
    elif video:
        logger.info(f"Observation {observation_id} video is still transcoding, skipped")

    return refs
