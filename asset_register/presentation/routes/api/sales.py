from flask import request
from flask_login import login_required
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import (
    get_engine, ok, parse_date, parse_int, payload, photo_from_request,
)


@api_bp.post('/sales')
@login_required
def sell_asset():
    data = payload()
    sale = get_engine().sell_asset(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        sale_price=data.get('sale_price'),
        sale_date=parse_date(data.get('sale_date'), 'sale_date'),
        buyer_name=data.get('buyer_name'),
        reason=data.get('reason'),
        buyer_contact=data.get('buyer_contact'),
        notes=data.get('notes'),
        proof_photo_id=photo_from_request('sale_proof_photo', data),
    )
    return ok(sale.to_dict(), 201)


@api_bp.get('/sales')
@login_required
def list_sales():
    unit_id = request.args.get('unit_id', type=int)
    sales = get_engine().list_sales(unit_id, status=request.args.get('status') or None)
    return ok([sale.to_dict() for sale in sales])


@api_bp.get('/sales/available-assets')
@login_required
def sellable_assets():
    unit_id = request.args.get('unit_id', type=int)
    assets = get_engine().list_sellable_assets(unit_id)
    return ok([asset.to_dict(include_audit_fields=False) for asset in assets])


@api_bp.post('/sales/<int:sale_id>/cancel')
@login_required
def cancel_sale(sale_id):
    data = payload()
    sale = get_engine().cancel_sale(sale_id, reason=data.get('reason'))
    return ok(sale.to_dict())
