from flask import jsonify, request
from flask_login import login_required
from asset_register.buisness.core.errors import FormatError
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import get_engine, ok, parse_date


def _import_text():
    upload = request.files.get('file')
    if upload is not None and upload.filename:
        try:
            return upload.read().decode('utf-8-sig')
        except UnicodeDecodeError:
            raise FormatError("Import must be UTF-8 text")
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data.get('csv') or ''
    return request.get_data(as_text=True)


@api_bp.post('/assets/import')
@login_required
def import_assets():
    result = get_engine().validate_and_import(_import_text())
    if not result.ok:
        body = {'success': False, 'error': 'import_rejected',
                'message': f"{len(result.errors)} row errors; nothing was imported"}
        body.update(result.to_dict())
        return jsonify(body), 400
    return ok(result.to_dict(), 201)


@api_bp.get('/assets/<int:asset_id>/depreciation')
@login_required
def asset_depreciation(asset_id):
    as_of = parse_date(request.args.get('as_of'), 'as_of', required=False)
    return ok(get_engine().compute_depreciation(asset_id, as_of).to_dict())


@api_bp.get('/assets/<int:asset_id>/depreciation/schedule')
@login_required
def asset_depreciation_schedule(asset_id):
    months = request.args.get('months', type=int)
    entries = get_engine().depreciation_schedule(asset_id, months)
    return ok([entry.to_dict() for entry in entries])
