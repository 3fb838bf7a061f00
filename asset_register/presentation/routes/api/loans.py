from flask import request
from flask_login import login_required
from asset_register.presentation.routes.api import api_bp
from asset_register.presentation.routes.api.helpers import (
    get_engine, ok, parse_date, parse_int, payload, photo_from_request,
)


@api_bp.post('/loans')
@login_required
def request_loan():
    data = payload()
    loan = get_engine().request_loan(
        asset_id=parse_int(data.get('asset_id'), 'asset_id'),
        expected_return_date=parse_date(data.get('expected_return_date'), 'expected_return_date'),
        purpose=data.get('purpose'),
        borrower_id=parse_int(data.get('borrower_id'), 'borrower_id', required=False),
    )
    return ok(loan.to_dict(), 201)


@api_bp.get('/loans/pending')
@login_required
def pending_loans():
    unit_id = request.args.get('unit_id', type=int)
    return ok([loan.to_dict() for loan in get_engine().list_pending_loans(unit_id)])


@api_bp.post('/loans/<int:loan_id>/approve')
@login_required
def approve_loan(loan_id):
    data = payload()
    loan = get_engine().approve_loan(
        loan_id,
        approval_date=parse_date(data.get('approval_date'), 'approval_date'),
        proof_photo_id=photo_from_request('loan_proof_photo', data),
    )
    return ok(loan.to_dict())


@api_bp.post('/loans/<int:loan_id>/reject')
@login_required
def reject_loan(loan_id):
    data = payload()
    loan = get_engine().reject_loan(
        loan_id,
        approval_date=parse_date(data.get('approval_date'), 'approval_date'),
        reason=data.get('rejection_reason'),
    )
    return ok(loan.to_dict())


@api_bp.post('/loans/<int:loan_id>/return')
@login_required
def submit_return(loan_id):
    data = payload()
    loan = get_engine().submit_loan_return(
        loan_id,
        return_date=parse_date(data.get('return_date'), 'return_date'),
        return_photo_id=photo_from_request('return_proof_photo', data),
        notes=data.get('notes'),
    )
    return ok(loan.to_dict())


@api_bp.post('/loans/<int:loan_id>/return/approve')
@login_required
def approve_return(loan_id):
    data = payload()
    loan = get_engine().approve_loan_return(
        loan_id,
        verification_date=parse_date(data.get('verification_date'), 'verification_date'),
        condition=data.get('condition'),
        notes=data.get('assessment_notes'),
    )
    return ok(loan.to_dict())


@api_bp.post('/loans/<int:loan_id>/return/reject')
@login_required
def reject_return(loan_id):
    data = payload()
    loan = get_engine().reject_loan_return(
        loan_id,
        verification_date=parse_date(data.get('verification_date'), 'verification_date'),
        reason=data.get('rejection_reason'),
    )
    return ok(loan.to_dict())


@api_bp.post('/loans/<int:loan_id>/lost')
@login_required
def report_lost(loan_id):
    data = payload()
    loan = get_engine().report_loan_lost(
        loan_id,
        loss_date=parse_date(data.get('loss_date'), 'loss_date'),
        description=data.get('loss_description'),
        photo_id=photo_from_request('loss_proof_photo', data),
    )
    return ok(loan.to_dict())
