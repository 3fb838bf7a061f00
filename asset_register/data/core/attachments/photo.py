from asset_register.data.core.user_created_base import UserCreatedBase
from asset_register import db
from pathlib import Path


class Photo(UserCreatedBase):
    """Evidence / proof-of-loan photo stored on the filesystem by the FileStore"""
    __tablename__ = 'photos'

    filename = db.Column(db.String(255), nullable=False)
    file_size = db.Column(db.Integer, nullable=False)  # Size in bytes
    mime_type = db.Column(db.String(100), nullable=False)
    file_path = db.Column(db.String(500), nullable=False)  # Relative to the store root

    ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp'}

    @classmethod
    def is_allowed_file(cls, filename):
        if not filename:
            return False
        return Path(filename).suffix.lower() in cls.ALLOWED_EXTENSIONS

    def get_file_url(self):
        return f"/api/photos/{self.id}"

    def __repr__(self):
        return f'<Photo {self.filename} ({self.file_size} bytes)>'
