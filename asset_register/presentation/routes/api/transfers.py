from flask import request
from flask_login import login_required
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import get_engine, ok, parse_int, payload


@api_bp.post('/transfers')
@login_required
def request_transfer():
    data = payload()
    movement = get_engine().request_transfer(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        to_unit_id=parse_int(data.get('to_unit_id'), 'to_unit_id'),
        notes=data.get('notes'),
    )
    return ok(movement.to_dict(), 201)


@api_bp.get('/transfers/pending')
@login_required
def pending_transfers():
    unit_id = request.args.get('unit_id', type=int)
    movements = get_engine().list_pending_transfers(unit_id)
    return ok([m.to_dict() for m in movements])


@api_bp.post('/transfers/<int:movement_id>/approve')
@login_required
def approve_transfer(movement_id):
    movement = get_engine().approve_transfer(movement_id)
    return ok(movement.to_dict())


@api_bp.post('/transfers/<int:movement_id>/reject')
@login_required
def reject_transfer(movement_id):
    data = payload()
    movement = get_engine().reject_transfer(movement_id, data.get('rejection_reason') or data.get('reason'))
    return ok(movement.to_dict())


@api_bp.get('/assets/<int:asset_id>/transfers')
@login_required
def transfer_history(asset_id):
    return ok([m.to_dict() for m in get_engine().transfer_history(asset_id)])
