from io import BytesIO
from flask import request, send_file
from flask_login import login_required
from asset_register.buisness.core.errors import ValidationError
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import get_engine, ok


@api_bp.post('/photos')
@login_required
def upload_photo():
    upload = request.files.get('photo')
    if upload is None or not upload.filename:
        raise ValidationError("photo is required", field="photo")
    photo = get_engine().store_photo(upload.read(), upload.filename, upload.mimetype)
    return ok(photo.to_dict(include_audit_fields=False), 201)


@api_bp.get('/photos/<int:photo_id>')
@login_required
def download_photo(photo_id):
    store = get_engine().file_store
    photo = store.get(photo_id)
    return send_file(BytesIO(store.read(photo_id)), mimetype=photo.mime_type, download_name=photo.filename)
