"""
Tests for report aggregation
"""
from datetime import date, timedelta

import pytest

from asset_register.data.core.asset_info.asset_status import AssetStatus
from asset_register.buisness.core.errors import ValidationError

TODAY = date(2025, 6, 15)


def test_asset_report_rows_carry_depreciation(engine, make_asset):
    make_asset(name='Laptop', unit='FIN', value=15000000, purchase_date=date(2023, 1, 15), useful_life=4)
    make_asset(name='Desk', unit='ITS', value=1200, purchase_date=date(2010, 1, 1), useful_life=1,
               status=AssetStatus.AVAILABLE)

    report = engine.build_report('assets')

    laptop = next(row for row in report.rows if row['name'] == 'Laptop')
    assert laptop['monthly_depreciation'] == 312500.0
    assert laptop['current_value'] == 5937500.0
    assert laptop['depreciation_percentage'] == 60
    assert laptop['unit_name'] == 'Finance'
    assert laptop['status_label'] == 'In Use'

    summary = report.summary
    assert summary['total_assets'] == 2
    assert summary['total_value'] == 15001200.0
    assert summary['total_current_value'] == 5937500.0
    assert summary['total_depreciation'] == 9063700.0
    assert summary['count_in_use'] == 1
    assert summary['count_available'] == 1
    assert summary['count_on_loan'] == 0


def test_asset_report_filters(engine, make_asset, units):
    make_asset(name='Laptop', unit='FIN', purchase_date=date(2023, 1, 15))
    make_asset(name='Router', unit='ITS', purchase_date=date(2024, 5, 1), status=AssetStatus.IN_REPAIR)

    by_unit = engine.build_report('assets', {'unit_id': units['ITS'].id})
    by_status = engine.build_report('assets', {'status': 'in repair'})
    by_date = engine.build_report('assets', {'date_from': '2024-01-01', 'date_to': '2024-12-31'})

    assert [row['name'] for row in by_unit.rows] == ['Router']
    assert [row['name'] for row in by_status.rows] == ['Router']
    assert [row['name'] for row in by_date.rows] == ['Router']


def test_transfer_report_summary(engine, make_asset, units):
    a = make_asset(name='A', unit='FIN')
    b = make_asset(name='B', unit='FIN')
    c = make_asset(name='C', unit='FIN')
    engine.approve_transfer(engine.request_transfer(a.id, units['ITS'].id).id)
    engine.reject_transfer(engine.request_transfer(b.id, units['ITS'].id).id, "No space")
    engine.request_transfer(c.id, units['HQ'].id)

    report = engine.build_report('transfers')

    assert report.summary == {'total': 3, 'pending': 1, 'approved': 1, 'rejected': 1}
    assert {row['to_unit_name'] for row in report.rows} == {'IT Support', 'Head Office'}

    pending_only = engine.build_report('transfers', {'status': 'PENDING'})
    assert [row['asset_tag'] for row in pending_only.rows] == [c.asset_tag]


def test_loan_report_counts_overdue(engine, make_asset, users, photo, clock):
    laptop = make_asset(name='Laptop')
    camera = make_asset(name='Camera')
    late = engine.request_loan(laptop.id, TODAY + timedelta(days=1), "Fieldwork", borrower_id=users['fin_user'].id)
    engine.approve_loan(late.id, TODAY, photo.id)
    engine.request_loan(camera.id, TODAY + timedelta(days=30), "Marketing shoot", borrower_id=users['fin_user'].id)
    clock.advance(days=5)

    report = engine.build_report('loans')

    assert report.summary['total_loans'] == 2
    assert report.summary['approved'] == 1
    assert report.summary['pending'] == 1
    assert report.summary['overdue'] == 1
    overdue_rows = [row for row in report.rows if row['is_overdue']]
    assert [row['asset_name'] for row in overdue_rows] == ['Laptop']


def test_incident_report_summary(engine, make_asset, photo):
    asset = make_asset()
    engine.file_incident(asset.id, 'Damage', "Screen cracked in transit", TODAY, photo.id)
    engine.file_incident(asset.id, 'Damage', "Keyboard stopped working", TODAY, photo.id)

    report = engine.build_report('incidents')

    assert report.summary == {'total': 2, 'damage': 2, 'loss': 0}


def test_unknown_domain_and_bad_filters_are_validation_errors(engine):
    with pytest.raises(ValidationError):
        engine.build_report('maintenance')
    with pytest.raises(ValidationError):
        engine.build_report('assets', {'date_from': '15/06/2025'})
    with pytest.raises(ValidationError):
        engine.build_report('assets', {'date_from': '2025-06-15', 'date_to': '2025-01-01'})
    with pytest.raises(ValidationError):
        engine.build_report('assets', {'colour': 'blue'})


def test_report_to_dict(engine, make_asset):
    make_asset()

    body = engine.build_report('assets', {'status': 'InUse'}).to_dict()

    assert body['domain'] == 'assets'
    assert body['filters']['status'] == 'InUse'
    assert body['generated_at'].startswith('2025-06-15')
    assert len(body['rows']) == 1
