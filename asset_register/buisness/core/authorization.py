"""
AuthorizationPolicy - explicit (role, operation) -> scope lookup

The workflows never look at identity. The engine facade asks this policy
before delegating, passing the entity's unit and owner so scoped grants can
be evaluated.
"""

from typing import Dict, Optional
from asset_register.data.core.user_info.user import Role
from asset_register.buisness.core.errors import AuthorizationError


class Scope:
    GLOBAL = 'global'        # any entity
    OWN_UNIT = 'own_unit'    # entity's unit is the actor's unit
    OWN_RECORD = 'own_record'  # actor is the requester / borrower


class Operation:
    TRANSFER_REQUEST = 'transfer.request'
    TRANSFER_DECIDE = 'transfer.decide'
    TRANSFER_VIEW = 'transfer.view'
    LOAN_REQUEST = 'loan.request'
    LOAN_DECIDE = 'loan.decide'
    LOAN_VIEW = 'loan.view'
    LOAN_RETURN = 'loan.return'
    LOAN_RETURN_DECIDE = 'loan.return_decide'
    LOAN_REPORT_LOST = 'loan.report_lost'
    IMPORT = 'asset.import'
    SALE_RECORD = 'sale.record'
    SALE_CANCEL = 'sale.cancel'
    SALE_VIEW = 'sale.view'
    INCIDENT_FILE = 'incident.file'
    REPORT_VIEW = 'report.view'

    ALL = (
        TRANSFER_REQUEST, TRANSFER_DECIDE, TRANSFER_VIEW,
        LOAN_REQUEST, LOAN_DECIDE, LOAN_VIEW, LOAN_RETURN, LOAN_RETURN_DECIDE, LOAN_REPORT_LOST,
        IMPORT, SALE_RECORD, SALE_CANCEL, SALE_VIEW, INCIDENT_FILE, REPORT_VIEW,
    )


_EVERYTHING = {operation: Scope.GLOBAL for operation in Operation.ALL}

POLICY: Dict[Role, Dict[str, str]] = {
    Role.SUPER_ADMIN: dict(_EVERYTHING),
    Role.ADMIN_HOLDING: dict(_EVERYTHING),
    Role.ADMIN_UNIT: {
        Operation.TRANSFER_REQUEST: Scope.OWN_UNIT,    # asset's current unit
        Operation.TRANSFER_DECIDE: Scope.OWN_UNIT,     # movement's target unit
        Operation.TRANSFER_VIEW: Scope.OWN_UNIT,
        Operation.LOAN_REQUEST: Scope.OWN_UNIT,
        Operation.LOAN_DECIDE: Scope.OWN_UNIT,
        Operation.LOAN_VIEW: Scope.OWN_UNIT,
        Operation.LOAN_RETURN: Scope.OWN_RECORD,
        Operation.LOAN_RETURN_DECIDE: Scope.OWN_UNIT,
        Operation.LOAN_REPORT_LOST: Scope.OWN_RECORD,
        Operation.IMPORT: Scope.GLOBAL,
        Operation.SALE_RECORD: Scope.OWN_UNIT,       # asset's unit; cancelling is for holding admins
        Operation.SALE_VIEW: Scope.OWN_UNIT,
        Operation.INCIDENT_FILE: Scope.OWN_UNIT,
        Operation.REPORT_VIEW: Scope.GLOBAL,
    },
    Role.USER: {
        Operation.LOAN_REQUEST: Scope.OWN_UNIT,
        Operation.LOAN_RETURN: Scope.OWN_RECORD,
        Operation.LOAN_REPORT_LOST: Scope.OWN_RECORD,
        Operation.INCIDENT_FILE: Scope.OWN_UNIT,
    },
    Role.AUDITOR: {
        Operation.REPORT_VIEW: Scope.GLOBAL,
    },
}


class AuthorizationPolicy:
    """
    Policy lookup for engine operations.

    check() raises AuthorizationError when the actor's role has no grant for
    the operation, or when a scoped grant does not cover the entity.
    """

    @classmethod
    def scope_for(cls, role: Optional[Role], operation: str) -> Optional[str]:
        if role is None:
            return None
        return POLICY.get(Role(role), {}).get(operation)

    @classmethod
    def check(cls, actor, operation: str, unit_id: Optional[int] = None, owner_id: Optional[int] = None) -> str:
        """
        Args:
            actor: User performing the operation (None when anonymous)
            operation: One of Operation.*
            unit_id: Unit the entity belongs to, for OWN_UNIT grants
            owner_id: Requester / borrower of the entity, for OWN_RECORD grants

        Returns:
            str: The scope that granted access

        Raises:
            AuthorizationError: If no grant covers the request
        """
        if actor is None:
            raise AuthorizationError("Authentication required")
        if not actor.is_active:
            raise AuthorizationError(f"User {actor.username} is inactive")

        scope = cls.scope_for(actor.role, operation)
        if scope is None:
            raise AuthorizationError(f"Role {Role(actor.role).value} may not perform {operation}")

        if scope == Scope.OWN_UNIT:
            if unit_id is None or actor.unit_id != unit_id:
                raise AuthorizationError(f"{operation} is limited to the actor's own unit")
        elif scope == Scope.OWN_RECORD:
            if owner_id is None or actor.id != owner_id:
                raise AuthorizationError(f"{operation} is limited to the actor's own records")

        return scope

    @classmethod
    def is_allowed(cls, actor, operation: str, unit_id: Optional[int] = None, owner_id: Optional[int] = None) -> bool:
        try:
            cls.check(actor, operation, unit_id=unit_id, owner_id=owner_id)
        except AuthorizationError:
            return False
        return True
