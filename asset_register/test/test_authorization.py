"""
Tests for the role policy and its enforcement by the engine
"""
from datetime import date, timedelta

import pytest

from asset_register.data.core.user_info.user import Role
from asset_register.data.workflows.asset_movement import MovementStatus
from asset_register.buisness.core.authorization import AuthorizationPolicy, Operation, Scope, POLICY
from asset_register.buisness.core.errors import AuthorizationError

TODAY = date(2025, 6, 15)


def test_every_role_has_a_policy_entry():
    assert set(POLICY) == set(Role)
    for grants in POLICY.values():
        assert set(grants) <= set(Operation.ALL)
        assert set(grants.values()) <= {Scope.GLOBAL, Scope.OWN_UNIT, Scope.OWN_RECORD}


def test_auditor_may_only_view_reports(users):
    auditor = users['auditor']

    assert AuthorizationPolicy.check(auditor, Operation.REPORT_VIEW) == Scope.GLOBAL
    for operation in Operation.ALL:
        if operation != Operation.REPORT_VIEW:
            assert not AuthorizationPolicy.is_allowed(auditor, operation, unit_id=auditor.unit_id, owner_id=auditor.id)


def test_unit_admin_is_limited_to_own_unit(users, units):
    fin_admin = users['fin_admin']

    assert AuthorizationPolicy.is_allowed(fin_admin, Operation.TRANSFER_REQUEST, unit_id=units['FIN'].id)
    assert not AuthorizationPolicy.is_allowed(fin_admin, Operation.TRANSFER_REQUEST, unit_id=units['ITS'].id)
    assert not AuthorizationPolicy.is_allowed(fin_admin, Operation.TRANSFER_REQUEST, unit_id=None)


def test_user_may_return_only_own_loans(users, units):
    fin_user = users['fin_user']

    assert AuthorizationPolicy.is_allowed(fin_user, Operation.LOAN_RETURN, owner_id=fin_user.id)
    assert not AuthorizationPolicy.is_allowed(fin_user, Operation.LOAN_RETURN, owner_id=users['its_user'].id)
    assert not AuthorizationPolicy.is_allowed(fin_user, Operation.LOAN_DECIDE, unit_id=units['FIN'].id)


def test_anonymous_and_inactive_actors_are_denied(users):
    with pytest.raises(AuthorizationError):
        AuthorizationPolicy.check(None, Operation.REPORT_VIEW)

    users['auditor'].is_active = False
    with pytest.raises(AuthorizationError):
        AuthorizationPolicy.check(users['auditor'], Operation.REPORT_VIEW)


def test_transfer_approval_belongs_to_target_unit_admin(engine, identity, make_asset, units, users):
    asset = make_asset(unit='FIN')
    identity.switch(users['fin_admin'])
    movement = engine.request_transfer(asset.id, units['ITS'].id)

    with pytest.raises(AuthorizationError):
        engine.approve_transfer(movement.id)
    assert engine.transfers.get(movement.id).status == MovementStatus.PENDING

    identity.switch(users['its_admin'])
    approved = engine.approve_transfer(movement.id)
    assert approved.validated_by_id == users['its_admin'].id


def test_unit_admin_sees_only_own_pending_transfers(engine, identity, make_asset, units, users):
    to_its = engine.request_transfer(make_asset(unit='FIN').id, units['ITS'].id)
    engine.request_transfer(make_asset(unit='FIN').id, units['HQ'].id)

    identity.switch(users['its_admin'])
    assert [m.id for m in engine.list_pending_transfers()] == [to_its.id]
    with pytest.raises(AuthorizationError):
        engine.list_pending_transfers(units['HQ'].id)


def test_user_cannot_request_loan_for_someone_else(engine, identity, make_asset, users):
    asset = make_asset(unit='FIN')
    identity.switch(users['fin_user'])

    with pytest.raises(AuthorizationError):
        engine.request_loan(asset.id, TODAY, "On behalf of a colleague", borrower_id=users['its_user'].id)

    loan = engine.request_loan(asset.id, TODAY, "For myself")
    assert loan.borrower_id == users['fin_user'].id


def test_user_cannot_borrow_from_another_unit(engine, identity, make_asset, users):
    asset = make_asset(unit='ITS')
    identity.switch(users['fin_user'])

    with pytest.raises(AuthorizationError):
        engine.request_loan(asset.id, TODAY + timedelta(days=1), "Borrowing across units")


def test_auditor_cannot_import_or_transfer(engine, identity, make_asset, units, users):
    asset = make_asset(unit='FIN')
    identity.switch(users['auditor'])

    with pytest.raises(AuthorizationError):
        engine.validate_and_import("name,category,unit_id,value,purchasedate,usefullife,status")
    with pytest.raises(AuthorizationError):
        engine.request_transfer(asset.id, units['ITS'].id)
    assert engine.build_report('assets').summary['total_assets'] == 1


def test_engine_without_actor_is_denied(engine, identity):
    identity.switch(None)

    with pytest.raises(AuthorizationError):
        engine.build_report('assets')
