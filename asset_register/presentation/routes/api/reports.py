from flask import request
from flask_login import login_required
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import get_engine, ok


@api_bp.get('/reports/<domain>')
@login_required
def build_report(domain):
    filters = {key: value for key, value in request.args.items() if value != ''}
    report = get_engine().build_report(domain, filters)
    return ok(report.to_dict())
