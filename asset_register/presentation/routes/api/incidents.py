from flask_login import login_required
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import (
    get_engine, ok, parse_date, parse_int, payload, photo_from_request,
)


@api_bp.post('/incidents')
@login_required
def file_incident():
    data = payload()
    report = get_engine().file_incident(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        type=data.get('type'),
        description=data.get('description'),
        date=parse_date(data.get('date'), 'date'),
        evidence_photo_id=photo_from_request('evidence_photo', data),
    )
    return ok(report.to_dict(), 201)
