"""
Tests for the JSON API

Each test logs in a single user through FlaskLoginClient; setup that needs a
different actor goes through the engine fixture instead.
"""
import io
from datetime import date, timedelta

import pytest
from flask_login import FlaskLoginClient

from asset_register.data.core.asset_info.asset_status import AssetStatus
from asset_register.data.workflows.asset_loan import LoanStatus
from asset_register.data.workflows.asset_movement import AssetMovement, MovementStatus

from conftest import PNG_BYTES

HEADER = "name,category,unit_id,value,purchasedate,usefullife,status"


@pytest.fixture
def client_for(app):
    app.test_client_class = FlaskLoginClient

    def _client_for(user=None):
        if user is None:
            return app.test_client()
        return app.test_client(user=user)

    return _client_for


def test_anonymous_request_is_unauthorized(client_for):
    response = client_for().get('/api/transfers/pending')

    assert response.status_code == 401
    assert response.get_json()['error'] == 'unauthorized'


def test_transfer_request_then_conflict(client_for, make_asset, units, users):
    asset = make_asset(unit='FIN')
    client = client_for(users['fin_admin'])
    body = {'asset_id': asset.id, 'to_unit_id': units['ITS'].id, 'notes': "Desk move"}

    first = client.post('/api/transfers', json=body)
    second = client.post('/api/transfers', json=body)

    assert first.status_code == 201
    assert first.get_json()['data']['status'] == 'PENDING'
    assert second.status_code == 409
    assert second.get_json()['error'] == 'conflict'
    assert AssetMovement.query.count() == 1


def test_transfer_approval_by_other_unit_is_forbidden(client_for, engine, make_asset, units, users):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)

    response = client_for(users['fin_admin']).post(f'/api/transfers/{movement.id}/approve')

    assert response.status_code == 403
    assert response.get_json()['error'] == 'forbidden'
    assert engine.transfers.get(movement.id).status == MovementStatus.PENDING


def test_transfer_approval_moves_asset(client_for, engine, make_asset, units, users):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)

    response = client_for(users['its_admin']).post(f'/api/transfers/{movement.id}/approve')

    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'APPROVED'
    assert engine.registry.get(asset.id).unit_id == units['ITS'].id


def test_unknown_movement_is_not_found(client_for, users):
    response = client_for(users['holding']).post('/api/transfers/404/reject', json={'reason': "Not needed"})

    assert response.status_code == 404
    assert response.get_json()['error'] == 'not_found'


def test_import_format_error(client_for, users):
    response = client_for(users['holding']).post(
        '/api/assets/import', data="name,value\nLaptop,100", content_type='text/csv'
    )

    assert response.status_code == 400
    assert response.get_json()['error'] == 'format_error'


def test_import_upload_that_is_not_utf8_is_a_format_error(client_for, users):
    response = client_for(users['holding']).post(
        '/api/assets/import',
        data={'file': (io.BytesIO(b"\xff\xfe\xfa bad"), 'assets.csv')},
        content_type='multipart/form-data',
    )

    body = response.get_json()
    assert response.status_code == 400
    assert body['error'] == 'format_error'
    assert 'UTF-8' in body['message']


def test_import_row_errors_are_reported(client_for, users):
    text = f"{HEADER}\nLaptop,IT,,abc,2023-01-15,4,InUse"

    response = client_for(users['holding']).post('/api/assets/import', json={'csv': text})

    body = response.get_json()
    assert response.status_code == 400
    assert body['error'] == 'import_rejected'
    assert body['errors'] == [{'row': 2, 'field': 'value', 'message': body['errors'][0]['message']}]


def test_import_file_upload_creates_assets(client_for, units, users):
    text = f"{HEADER}\nLaptop,IT,{units['HQ'].id},15000000,2023-01-15,4,InUse\n"

    response = client_for(users['holding']).post(
        '/api/assets/import',
        data={'file': (io.BytesIO(text.encode('utf-8')), 'assets.csv')},
        content_type='multipart/form-data',
    )

    assert response.status_code == 201
    assert response.get_json()['data']['created_count'] == 1


def test_loan_approval_with_uploaded_proof(client_for, engine, make_asset, users):
    asset = make_asset(unit='FIN', status=AssetStatus.AVAILABLE)
    loan = engine.request_loan(asset.id, date(2025, 6, 20), "Client visit", borrower_id=users['fin_user'].id)

    response = client_for(users['fin_admin']).post(
        f'/api/loans/{loan.id}/approve',
        data={
            'approval_date': date.today().isoformat(),
            'loan_proof_photo': (io.BytesIO(PNG_BYTES), 'handover.png', 'image/png'),
        },
        content_type='multipart/form-data',
    )

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['status'] == LoanStatus.APPROVED.value
    assert data['loan_proof_photo_id'] is not None
    assert engine.registry.get(asset.id).status == AssetStatus.ON_LOAN


def test_loan_approval_without_proof_is_rejected(client_for, engine, make_asset, users):
    asset = make_asset(unit='FIN')
    loan = engine.request_loan(asset.id, date(2025, 6, 20), "Client visit", borrower_id=users['fin_user'].id)

    response = client_for(users['fin_admin']).post(
        f'/api/loans/{loan.id}/approve', json={'approval_date': date.today().isoformat()}
    )

    body = response.get_json()
    assert response.status_code == 400
    assert body['error'] == 'validation_error'
    assert body['field'] == 'loan_proof_photo'


def test_future_dates_are_rejected(client_for, make_asset, users):
    asset = make_asset(unit='FIN')

    response = client_for(users['fin_user']).post('/api/incidents', json={
        'asset_id': asset.id,
        'type': 'Damage',
        'description': "Hinge snapped off the lid",
        'date': (date.today() + timedelta(days=1)).isoformat(),
    })

    assert response.status_code == 400
    assert response.get_json()['field'] == 'date'


def test_reports_for_auditor(client_for, make_asset, users):
    make_asset()

    response = client_for(users['auditor']).get('/api/reports/assets?status=InUse')

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['summary']['total_assets'] == 1
    assert data['filters']['status'] == 'InUse'


def test_auditor_cannot_import(client_for, users):
    response = client_for(users['auditor']).post('/api/assets/import', json={'csv': HEADER})

    assert response.status_code == 403


def test_depreciation_endpoint(client_for, make_asset, users):
    asset = make_asset(value=15000000, purchase_date=date(2023, 1, 15), useful_life=4)

    response = client_for(users['auditor']).get(f'/api/assets/{asset.id}/depreciation?as_of=2025-06-15')

    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['current_value'] == 5937500.0
    assert data['depreciation_percentage'] == 60


def test_photo_upload_and_download(client_for, users):
    client = client_for(users['fin_user'])

    upload = client.post(
        '/api/photos',
        data={'photo': (io.BytesIO(PNG_BYTES), 'damage.png', 'image/png')},
        content_type='multipart/form-data',
    )
    photo_id = upload.get_json()['data']['id']
    download = client.get(f'/api/photos/{photo_id}')

    assert upload.status_code == 201
    assert download.status_code == 200
    assert download.data == PNG_BYTES
    assert download.mimetype == 'image/png'


def test_sale_and_sellable_assets(client_for, make_asset, users):
    asset = make_asset(unit='FIN')
    client = client_for(users['fin_admin'])

    created = client.post('/api/sales', json={
        'asset_id': asset.id,
        'sale_price': '1200.50',
        'sale_date': date.today().isoformat(),
        'buyer_name': "Koperasi Karyawan",
        'reason': "Surplus after office consolidation",
    })
    available = client.get('/api/sales/available-assets')

    assert created.status_code == 201
    data = created.get_json()['data']
    assert data['status'] == 'COMPLETED'
    assert data['sale_price'] == 1200.5
    assert available.get_json()['data'] == []


def test_unit_admin_cannot_cancel_sale(client_for, engine, make_asset, users):
    asset = make_asset(unit='FIN')
    sale = engine.sell_asset(asset.id, '500', date(2025, 6, 1), "Buyer", "Obsolete equipment")

    response = client_for(users['fin_admin']).post(f'/api/sales/{sale.id}/cancel', json={})

    assert response.status_code == 403
    assert engine.registry.get(asset.id).status == AssetStatus.SOLD
