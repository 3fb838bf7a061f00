"""
Request parsing shared by the API routes

Wire values are strings; they are converted here and nowhere else.
"""

from datetime import date, datetime
from typing import Optional
from flask import g, jsonify, request
from asset_register.buisness.asset_lifecycle import AssetLifecycleEngine
from asset_register.buisness.core.errors import ValidationError


def get_engine() -> AssetLifecycleEngine:
    """One engine per request, bound to the logged-in user"""
    if 'engine' not in g:
        g.engine = AssetLifecycleEngine.from_app()
    return g.engine


def payload() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def parse_date(value, field: str, required: bool = True) -> Optional[date]:
    if value in (None, ''):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"{field} must be YYYY-MM-DD", field=field)


def parse_int(value, field: str, required: bool = True) -> Optional[int]:
    if value in (None, ''):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)


def photo_from_request(field: str, data: dict) -> Optional[int]:
    """
    A photo arrives either as a multipart upload under ``field`` or as the id
    of an already stored photo under ``<field>_id``.
    """
    upload = request.files.get(field)
    if upload is not None and upload.filename:
        photo = get_engine().store_photo(upload.read(), upload.filename, upload.mimetype)
        return photo.id
    return parse_int(data.get(f"{field}_id"), f"{field}_id", required=False)


def ok(data=None, status: int = 200, **extra):
    body = {'success': True, 'data': data}
    body.update(extra)
    return jsonify(body), status
