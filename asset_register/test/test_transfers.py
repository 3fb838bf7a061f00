"""
Tests for the inter-unit transfer workflow
"""
import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from asset_register import db
from asset_register.data.workflows.asset_movement import AssetMovement, MovementStatus
from asset_register.buisness.core.errors import ConflictError, NotFoundError, StateError, ValidationError
from asset_register.buisness.transfers.state_machine import MovementStateMachine


def test_request_creates_pending_movement_from_current_unit(engine, make_asset, units, users):
    asset = make_asset(unit='FIN')

    movement = engine.request_transfer(asset.id, units['ITS'].id, notes="Needed by the helpdesk")

    assert movement.status == MovementStatus.PENDING
    assert movement.from_unit_id == units['FIN'].id
    assert movement.to_unit_id == units['ITS'].id
    assert movement.requested_by_id == users['holding'].id
    assert movement.validated_by_id is None
    assert movement.rejection_reason is None


def test_request_to_current_unit_is_rejected(engine, make_asset, units):
    asset = make_asset(unit='FIN')

    with pytest.raises(ValidationError):
        engine.request_transfer(asset.id, units['FIN'].id)


def test_request_to_inactive_unit_is_rejected(engine, make_asset, units):
    asset = make_asset(unit='FIN')

    with pytest.raises(ValidationError):
        engine.request_transfer(asset.id, units['ARC'].id)


def test_request_with_unknown_asset_or_unit(engine, make_asset, units):
    asset = make_asset()

    with pytest.raises(NotFoundError):
        engine.request_transfer(9999, units['ITS'].id)
    with pytest.raises(NotFoundError):
        engine.request_transfer(asset.id, 9999)


def test_second_request_while_pending_conflicts(engine, make_asset, units):
    asset = make_asset(unit='FIN')
    engine.request_transfer(asset.id, units['ITS'].id)

    with pytest.raises(ConflictError):
        engine.request_transfer(asset.id, units['HQ'].id)

    assert AssetMovement.query.filter_by(asset_id=asset.id).count() == 1


def test_concurrent_request_loses_on_unique_pending_index(engine, make_asset, units, monkeypatch):
    """The pre-check can be raced; the partial unique index still rejects the second insert"""
    asset = make_asset(unit='FIN')
    engine.request_transfer(asset.id, units['ITS'].id)

    monkeypatch.setattr(engine.transfers, 'has_pending', lambda asset_id: False)
    with pytest.raises(ConflictError):
        engine.request_transfer(asset.id, units['HQ'].id)

    assert AssetMovement.query.filter_by(asset_id=asset.id).count() == 1


def test_database_rejects_two_pending_movements(app, make_asset, units):
    asset = make_asset(unit='FIN')
    for target in ('ITS', 'HQ'):
        db.session.add(AssetMovement(
            asset_id=asset.id,
            from_unit_id=units['FIN'].id,
            to_unit_id=units[target].id,
            status=MovementStatus.PENDING,
        ))

    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_resolved_movements_do_not_block_new_requests(engine, make_asset, units):
    asset = make_asset(unit='FIN')
    first = engine.request_transfer(asset.id, units['ITS'].id)
    engine.reject_transfer(first.id, "Not this quarter")

    second = engine.request_transfer(asset.id, units['ITS'].id)

    assert second.status == MovementStatus.PENDING


def test_approve_moves_asset_and_records_validator(engine, make_asset, units, users, clock):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)
    clock.advance(hours=2)

    approved = engine.approve_transfer(movement.id)

    assert approved.status == MovementStatus.APPROVED
    assert approved.validated_by_id == users['holding'].id
    assert approved.validated_at == clock.now()
    db.session.refresh(asset)
    assert asset.unit_id == units['ITS'].id


def test_approving_twice_is_a_state_error_and_unit_is_unchanged(engine, make_asset, units):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)
    engine.approve_transfer(movement.id)

    # Someone moves the asset on before the duplicate approval arrives
    engine.registry.update_unit(asset.id, units['HQ'].id)
    db.session.commit()

    with pytest.raises(StateError):
        engine.approve_transfer(movement.id)

    db.session.refresh(asset)
    assert asset.unit_id == units['HQ'].id


def test_approve_after_reject_is_a_state_error(engine, make_asset, units):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)
    engine.reject_transfer(movement.id, "Duplicate request")

    with pytest.raises(StateError):
        engine.approve_transfer(movement.id)

    db.session.refresh(asset)
    assert asset.unit_id == units['FIN'].id
    assert engine.transfers.get(movement.id).status == MovementStatus.REJECTED


def test_stale_approval_loses_compare_and_set(engine, make_asset, units):
    """A caller that read PENDING before a concurrent rejection must not apply its approval"""
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)
    assert movement.status == MovementStatus.PENDING

    # Concurrent rejection, invisible to the already loaded movement object
    db.session.execute(
        update(AssetMovement)
        .where(AssetMovement.id == movement.id)
        .values(status=MovementStatus.REJECTED, rejection_reason="Rejected elsewhere")
        .execution_options(synchronize_session=False)
    )

    with pytest.raises(StateError):
        engine.transfers.approve(movement.id, approver_id=None)

    db.session.refresh(asset)
    assert asset.unit_id == units['FIN'].id


def test_reject_requires_reason(engine, make_asset, units):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)

    with pytest.raises(ValidationError):
        engine.reject_transfer(movement.id, "   ")
    with pytest.raises(ValidationError):
        engine.reject_transfer(movement.id, "x" * 1001)

    assert engine.transfers.get(movement.id).status == MovementStatus.PENDING


def test_reject_records_reason_without_moving_asset(engine, make_asset, units, users):
    asset = make_asset(unit='FIN')
    movement = engine.request_transfer(asset.id, units['ITS'].id)

    rejected = engine.reject_transfer(movement.id, "Budget freeze")

    assert rejected.status == MovementStatus.REJECTED
    assert rejected.rejection_reason == "Budget freeze"
    assert rejected.validated_by_id == users['holding'].id
    db.session.refresh(asset)
    assert asset.unit_id == units['FIN'].id


def test_list_pending_is_oldest_first_and_filters_target_unit(engine, make_asset, units, clock):
    laptop = make_asset(name='Laptop', unit='FIN')
    printer = make_asset(name='Printer', unit='FIN')
    chair = make_asset(name='Chair', unit='ITS')

    first = engine.request_transfer(laptop.id, units['ITS'].id)
    clock.advance(minutes=5)
    second = engine.request_transfer(printer.id, units['HQ'].id)
    clock.advance(minutes=5)
    third = engine.request_transfer(chair.id, units['HQ'].id)

    assert [m.id for m in engine.list_pending_transfers()] == [first.id, second.id, third.id]
    assert [m.id for m in engine.list_pending_transfers(units['HQ'].id)] == [second.id, third.id]

    engine.approve_transfer(second.id)
    assert [m.id for m in engine.list_pending_transfers(units['HQ'].id)] == [third.id]


def test_history_is_newest_first(engine, make_asset, units, clock):
    asset = make_asset(unit='FIN')
    first = engine.request_transfer(asset.id, units['ITS'].id)
    engine.approve_transfer(first.id)
    clock.advance(days=1)
    second = engine.request_transfer(asset.id, units['HQ'].id)

    assert [m.id for m in engine.transfer_history(asset.id)] == [second.id, first.id]


def test_state_machine_has_no_edges_out_of_terminal_states():
    for terminal in MovementStateMachine.TERMINAL_STATES:
        assert MovementStateMachine.get_allowed_transitions(terminal) == set()
        for target in MovementStatus:
            assert not MovementStateMachine.can_transition(terminal, target)
    assert MovementStateMachine.can_transition(MovementStatus.PENDING, MovementStatus.APPROVED)
    assert MovementStateMachine.can_transition(MovementStatus.PENDING, MovementStatus.REJECTED)
