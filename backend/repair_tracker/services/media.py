"""Image storage and QR / tracking references for repair cases.

Storage layout:
    <upload_dir>/images/<repair_id>_<uuid>.jpg  -- served at /uploads/images/<file>
"""
from __future__ import annotations
import base64
import binascii
import io
import logging
import uuid
from pathlib import Path
from urllib.parse import quote
from PIL import Image, UnidentifiedImageError
from repair_tracker.errors import DependencyFailure

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1920
JPEG_QUALITY = 85
IMAGES_SUBDIR = 'images'
PUBLIC_PREFIX = '/uploads'


class ImageProcessor:
    """Resize, re-encode and store case photos."""

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir)
        self.images_dir = self.upload_dir / IMAGES_SUBDIR

    def _ensure_dir(self):
        self.images_dir.mkdir(parents=True, exist_ok=True)

    def process(self, data: bytes, repair_id: str) -> str:
        """Store ``data`` as a JPEG fitted inside 1920x1920; return its public path."""
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            logger.warning('Image processing failed for %s: %s', repair_id, exc)
            raise DependencyFailure('Failed to process image') from exc
        # thumbnail() keeps aspect ratio and never enlarges
        image.thumbnail((MAX_DIMENSION, MAX_DIMENSION))
        if image.mode != 'RGB':
            image = image.convert('RGB')
        filename = f"{_safe_name(repair_id)}_{uuid.uuid4()}.jpg"
        self._ensure_dir()
        dest = self.images_dir / filename
        try:
            image.save(dest, format='JPEG', quality=JPEG_QUALITY, progressive=True, optimize=True)
        except OSError as exc:
            logger.error('Could not write image %s: %s', dest, exc)
            raise DependencyFailure('Failed to process image') from exc
        logger.info('Stored image %s (%dx%d)', dest, image.width, image.height)
        return f"{PUBLIC_PREFIX}/{IMAGES_SUBDIR}/{filename}"

    def process_base64(self, data: str, repair_id: str) -> str:
        """Accepts raw base64 or a ``data:image/...;base64,`` URL."""
        payload = data.split(',', 1)[1] if ',' in data else data
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            logger.warning('Invalid base64 image for %s', repair_id)
            raise DependencyFailure('Failed to process base64 image') from exc
        return self.process(raw, repair_id)

    def delete(self, image_url: str) -> bool:
        if not image_url:
            return False
        path = self.images_dir / Path(image_url).name
        try:
            path.unlink()
            return True
        except OSError as exc:
            logger.warning('Error deleting image %s: %s', path, exc)
            return False


def _safe_name(repair_id: str) -> str:
    return ''.join(ch if ch.isalnum() or ch in '-_' else '_' for ch in repair_id) or 'repair'


class CodeLinks:
    """Renderable QR reference and customer tracking link for an identifier."""

    def __init__(self, qr_base_url: str, tracking_base_url: str, qr_size: int = 200):
        self.qr_base_url = qr_base_url
        self.tracking_base_url = tracking_base_url
        self.qr_size = qr_size

    def qr_code_url(self, repair_id: str) -> str:
        return f"{self.qr_base_url}?text={quote(repair_id, safe='')}&size={self.qr_size}"

    def tracking_url(self, repair_id: str) -> str:
        return f"{self.tracking_base_url}?id={quote(repair_id, safe='')}"
