"""
Tests for photo storage
"""
import pytest

from asset_register.data.core.attachments.photo import Photo
from asset_register.buisness.core.errors import NotFoundError, ValidationError
from asset_register.buisness.core.file_store import LocalFileStore

from conftest import PNG_BYTES


def test_save_records_photo_and_writes_file(engine, users):
    photo = engine.store_photo(PNG_BYTES, '../../proof of loan.png', 'image/png')

    assert photo.id is not None
    assert photo.filename == 'proof_of_loan.png'
    assert photo.file_size == len(PNG_BYTES)
    assert photo.mime_type == 'image/png'
    assert photo.created_by_id == users['holding'].id
    assert engine.file_store.exists(photo.id)
    assert engine.file_store.read(photo.id) == PNG_BYTES


@pytest.mark.parametrize('data, content_type', [
    (PNG_BYTES, 'application/pdf'),
    (PNG_BYTES, None),
    (b'', 'image/png'),
])
def test_non_images_and_empty_files_are_rejected(engine, data, content_type):
    with pytest.raises(ValidationError) as excinfo:
        engine.store_photo(data, 'evidence.png', content_type)

    assert excinfo.value.field == 'photo'
    assert Photo.query.count() == 0


def test_oversized_photo_is_rejected(app, users):
    store = LocalFileStore(app.config['FILE_STORE_ROOT'], max_bytes=len(PNG_BYTES) - 1)

    with pytest.raises(ValidationError):
        store.save(PNG_BYTES, 'proof.png', 'image/png', created_by_id=users['holding'].id)

    assert Photo.query.count() == 0


def test_missing_photo(engine):
    assert not engine.file_store.exists(None)
    assert not engine.file_store.exists(404)
    with pytest.raises(NotFoundError):
        engine.file_store.get(404)


def test_photo_without_file_on_disk_does_not_exist(engine, photo, tmp_path):
    (engine.file_store.root / photo.file_path).unlink()

    assert not engine.file_store.exists(photo.id)
