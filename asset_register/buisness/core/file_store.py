"""
LocalFileStore - evidence and proof-of-loan photos on the local filesystem

Files live under the configured root; a Photo row records the metadata and
the path relative to the root.
"""

import uuid
from pathlib import Path
from typing import Optional
from werkzeug.utils import secure_filename
from asset_register import db
from asset_register.data.core.attachments.photo import Photo
from asset_register.buisness.core.errors import NotFoundError, ValidationError
from asset_register.logger import get_logger

logger = get_logger("asset_register.domain.file_store")

DEFAULT_MAX_BYTES = 2 * 1024 * 1024


class LocalFileStore:

    def __init__(self, root, max_bytes: int = DEFAULT_MAX_BYTES):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def save(self, data: bytes, filename: str, content_type: str, created_by_id: Optional[int] = None) -> Photo:
        """
        Store an image and record it.

        Raises:
            ValidationError: not an image, empty, or larger than max_bytes
        """
        if not content_type or not content_type.lower().startswith('image/'):
            raise ValidationError(f"Photo must be an image, got {content_type or 'unknown type'}", field="photo")
        if not data:
            raise ValidationError("Photo is empty", field="photo")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"Photo is {len(data)} bytes; the limit is {self.max_bytes} bytes", field="photo"
            )

        safe_name = secure_filename(filename or '') or 'photo'
        relative_path = Path(uuid.uuid4().hex[:2]) / f"{uuid.uuid4().hex}_{safe_name}"
        full_path = self.root / relative_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)

        photo = Photo(
            filename=safe_name,
            file_size=len(data),
            mime_type=content_type.lower(),
            file_path=relative_path.as_posix(),
            created_by_id=created_by_id,
            updated_by_id=created_by_id,
        )
        try:
            db.session.add(photo)
            db.session.commit()
        except Exception:
            db.session.rollback()
            full_path.unlink(missing_ok=True)
            raise

        logger.info(f"Stored photo {photo.id} ({photo.file_size} bytes) at {photo.file_path}")
        return photo

    def get(self, photo_id: int) -> Photo:
        photo = db.session.get(Photo, photo_id) if photo_id is not None else None
        if photo is None:
            raise NotFoundError("Photo", photo_id)
        return photo

    def exists(self, photo_id: Optional[int]) -> bool:
        if photo_id is None:
            return False
        photo = db.session.get(Photo, photo_id)
        return photo is not None and (self.root / photo.file_path).is_file()

    def read(self, photo_id: int) -> bytes:
        photo = self.get(photo_id)
        return (self.root / photo.file_path).read_bytes()
