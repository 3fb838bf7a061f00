"""
Pytest configuration and fixtures for the asset register

Every test gets a fresh SQLite file database and photo store under tmp_path,
a FixedClock pinned to 2025-06-15 09:00 and an engine acting as the holding
administrator unless the test switches identity.
"""
import os
import tempfile
from datetime import date, datetime
from decimal import Decimal

import pytest

os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='asset_register_logs_'))
os.environ.setdefault('LOG_LEVEL', 'WARNING')

from asset_register import create_app  # noqa: E402
from asset_register import db as _db  # noqa: E402
from asset_register.build import build_models, insert_critical_data  # noqa: E402
from asset_register.data.core.unit import Unit  # noqa: E402
from asset_register.data.core.user_info.user import Role, User  # noqa: E402
from asset_register.data.core.asset_info.asset_status import AssetStatus  # noqa: E402
from asset_register.buisness.asset_lifecycle import AssetLifecycleEngine  # noqa: E402
from asset_register.buisness.core.asset_registry import AssetCandidate  # noqa: E402
from asset_register.buisness.core.clock import FixedClock  # noqa: E402
from asset_register.buisness.core.file_store import LocalFileStore  # noqa: E402
from asset_register.buisness.core.identity import StaticIdentity  # noqa: E402

TODAY = date(2025, 6, 15)

# Smallest valid PNG (1x1 transparent pixel)
PNG_BYTES = bytes.fromhex(
    '89504e470d0a1a0a0000000d4948445200000001000000010806000000'
    '1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082'
)


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create Flask application with an isolated database"""
    app = create_app({
        'SECRET_KEY': 'test-secret-key',
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{(tmp_path / 'asset_register_test.db').as_posix()}",
        'FILE_STORE_ROOT': str(tmp_path / 'photos'),
    })

    with app.app_context():
        build_models()
        insert_critical_data()
        yield app
        _db.session.remove()
        _db.engine.dispose()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 6, 15, 9, 0, 0))


@pytest.fixture
def units(app):
    """HQ, FIN and ITS are active; ARC is inactive"""
    created = {}
    for code, name, active in [
        ('HQ', 'Head Office', True),
        ('FIN', 'Finance', True),
        ('ITS', 'IT Support', True),
        ('ARC', 'Archive', False),
    ]:
        unit = Unit(name=name, code=code, is_active=active)
        _db.session.add(unit)
        created[code] = unit
    _db.session.commit()
    return created


@pytest.fixture
def users(app, units):
    """One user per role; unit admins and staff in FIN and ITS"""
    created = {'system': User.query.filter_by(username='system').one()}
    for username, role, unit_code in [
        ('holding', Role.ADMIN_HOLDING, 'HQ'),
        ('fin_admin', Role.ADMIN_UNIT, 'FIN'),
        ('its_admin', Role.ADMIN_UNIT, 'ITS'),
        ('fin_user', Role.USER, 'FIN'),
        ('its_user', Role.USER, 'ITS'),
        ('auditor', Role.AUDITOR, 'HQ'),
    ]:
        user = User(
            username=username,
            email=f"{username}@example.com",
            name=username.replace('_', ' ').title(),
            role=role,
            unit_id=units[unit_code].id,
        )
        _db.session.add(user)
        created[username] = user
    _db.session.commit()
    return created


@pytest.fixture
def identity(users):
    return StaticIdentity(users['holding'])


@pytest.fixture
def engine(app, identity, clock):
    return AssetLifecycleEngine(
        identity=identity,
        file_store=LocalFileStore(app.config['FILE_STORE_ROOT'], app.config['MAX_PHOTO_BYTES']),
        clock=clock,
        tag_prefix=app.config['ASSET_TAG_PREFIX'],
    )


@pytest.fixture
def make_asset(engine, units, users):
    """Factory creating one asset through the registry"""
    def _make_asset(name='Laptop', category='IT', unit='FIN', value=15000000,
                    purchase_date=date(2023, 1, 15), useful_life=4, status=AssetStatus.IN_USE):
        candidate = AssetCandidate(
            name=name,
            category=category,
            unit_id=units[unit].id if unit else None,
            value=Decimal(value),
            purchase_date=purchase_date,
            useful_life=useful_life,
            status=status,
        )
        return engine.registry.create_batch([candidate], created_by_id=users['system'].id)[0]

    return _make_asset


@pytest.fixture
def photo(engine):
    """A stored PNG usable as proof or evidence"""
    return engine.store_photo(PNG_BYTES, 'proof.png', 'image/png')
