from __future__ import annotations

import logging
from io import BytesIO

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone
from PIL import Image, ImageOps, UnidentifiedImageError

from .exceptions import InvalidPhoto


logger = logging.getLogger(__name__)

SELFIE_DIR = "attendance/selfie"
SELFIE_MAX_SIZE = (800, 800)
SELFIE_QUALITY = 75


def _compress(raw: bytes) -> bytes:
    try:
        with Image.open(BytesIO(raw)) as image:
            image = ImageOps.exif_transpose(image)
            image.thumbnail(SELFIE_MAX_SIZE)
            if image.mode != "RGB":
                image = image.convert("RGB")
            out = BytesIO()
            image.save(out, format="JPEG", quality=SELFIE_QUALITY, optimize=True, progressive=True)
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidPhoto("File foto tidak valid") from exc
    return out.getvalue()


def store_selfie(upload, user_id, kind: str) -> str:
    """
    Re-encode an uploaded selfie as JPEG and save it to default storage.
    Returns the stored file name relative to ``SELFIE_DIR``.
    """
    if upload is None:
        raise InvalidPhoto()

    max_bytes = getattr(settings, "ATTENDANCE_PHOTO_MAX_BYTES", 5 * 1024 * 1024)
    if upload.size > max_bytes:
        raise InvalidPhoto(f"Ukuran foto maksimal {max_bytes // (1024 * 1024)}MB")

    raw = upload.read()
    compressed = _compress(raw)
    stamp = timezone.now().strftime("%Y%m%d%H%M%S%f")
    name = default_storage.save(
        f"{SELFIE_DIR}/selfie_{user_id}_{kind}_{stamp}.jpg",
        ContentFile(compressed),
    )
    logger.debug(
        "Selfie stored %s (%s -> %s bytes)",
        name,
        len(raw),
        len(compressed),
    )
    return name.rsplit("/", 1)[-1]


def delete_selfie(filename: str) -> None:
    if not filename:
        return
    default_storage.delete(f"{SELFIE_DIR}/{filename}")


def selfie_url(filename: str | None) -> str | None:
    if not filename:
        return None
    return default_storage.url(f"{SELFIE_DIR}/{filename}")
