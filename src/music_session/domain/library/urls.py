"""
Media URL formatting.

Turns stored media references (absolute URLs, Cloudinary storage paths or
server-relative upload paths) into directly fetchable URLs. Total and
idempotent: never raises, and formatting an already formatted URL is a no-op.
"""

from enum import Enum
from typing import Optional

CLOUDINARY_HOST = "res.cloudinary.com"
CLOUDINARY_FOLDER_PREFIX = "MusicPlayerPRO"
DEFAULT_CLOUDINARY_CLOUD = "dzp9rltpr"


class ImageSize(Enum):
    """Cloudinary transformations for artwork."""

    THUMBNAIL = "w_300,h_300,c_fill,q_auto,f_auto"
    LARGE = "w_1000,h_1000,c_limit,q_auto,f_auto"


# Cloudinary transformation parameters start with one of these
_TRANSFORM_PREFIXES = ("w_", "h_", "c_", "q_", "f_", "g_", "e_", "ar_", "dpr_")


def _has_transform(path_after_upload: str) -> bool:
    first_segment = path_after_upload.split("/", 1)[0]
    return first_segment.startswith(_TRANSFORM_PREFIXES)


def _apply_image_size(url: str, size: Optional[ImageSize]) -> str:
    if size is None or CLOUDINARY_HOST not in url or "/upload/" not in url:
        return url
    head, tail = url.split("/upload/", 1)
    if _has_transform(tail):
        return url
    return f"{head}/upload/{size.value}/{tail}"


def format_url(
    ref: Optional[str],
    *,
    api_base_url: str = "",
    cloudinary_cloud_name: str = "",
    size: Optional[ImageSize] = None,
) -> Optional[str]:
    """Format a stored media reference as an absolute URL.

    Args:
        ref: Absolute URL, Cloudinary storage path or server-relative path
        api_base_url: Backend origin used for server-relative paths
        cloudinary_cloud_name: Cloud used for bare Cloudinary storage paths
        size: Optional artwork size; applied only to Cloudinary URLs

    Returns:
        Fetchable URL, or None when ref is empty or not a string
    """
    if not ref or not isinstance(ref, str):
        return None

    if ref.startswith("http"):
        return _apply_image_size(ref, size)

    if ref.startswith(CLOUDINARY_FOLDER_PREFIX):
        # Cloudinary serves audio under the "video" resource type
        resource_type = "image" if size is not None else "video"
        cloud = cloudinary_cloud_name or DEFAULT_CLOUDINARY_CLOUD
        url = f"https://{CLOUDINARY_HOST}/{cloud}/{resource_type}/upload/{ref}"
        return _apply_image_size(url, size)

    base_url = api_base_url[:-1] if api_base_url.endswith("/") else api_base_url
    separator = "" if ref.startswith("/") else "/"
    return f"{base_url}{separator}{ref}"
