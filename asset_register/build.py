"""
Database build orchestrator for the asset register
Creates tables and sequences, inserts critical data, optionally seeds demo data
"""

import json
from pathlib import Path
from asset_register import create_app, db
from asset_register.logger import get_logger

logger = get_logger("asset_register.build")

DATA_DIR = Path(__file__).parent / 'data' / 'core'


def build_models():
    """Create all tables and the asset tag sequence"""
    from asset_register.data.core.sequences.asset_tag_sequence import AssetTagSequence

    db.create_all()
    AssetTagSequence.create_sequence_if_not_exists()
    logger.info("All database tables created")


def insert_critical_data():
    """
    Insert the data the engine cannot run without (the system user).

    Loads from data/core/build_data_critical.json; idempotent.
    """
    from asset_register.data.core.user_info.user import User

    with open(DATA_DIR / 'build_data_critical.json', 'r') as f:
        critical_data = json.load(f)

    try:
        for user_data in critical_data['Essential']['Users'].values():
            User.find_or_create_from_dict(user_data, lookup_fields=['username'])
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Critical data insertion failed: {e}")
        raise

    logger.info("Critical data verified")


def insert_demo_data():
    """
    Seed demo units, one user per role and a few assets.

    Assets go through the bulk importer so demo data obeys the same rules as
    real imports.
    """
    from asset_register.data.core.unit import Unit
    from asset_register.data.core.user_info.user import User
    from asset_register.data.core.asset_info.asset import Asset
    from asset_register.buisness.asset_lifecycle import AssetLifecycleEngine
    from asset_register.buisness.core.identity import StaticIdentity

    with open(DATA_DIR / 'build_data_demo.json', 'r') as f:
        demo_data = json.load(f)

    system_user = User.query.filter_by(username='system').first()
    system_user_id = system_user.id if system_user else None

    units = {}
    try:
        for code, unit_data in demo_data['Units'].items():
            units[code], _ = Unit.find_or_create_from_dict(unit_data, lookup_fields=['code'])

        for user_data in demo_data['Users'].values():
            user_data = dict(user_data)
            user_data['unit_id'] = units[user_data.pop('unit')].id
            User.find_or_create_from_dict(user_data, user_id=system_user_id, lookup_fields=['username'])

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Demo data insertion failed: {e}")
        raise

    if Asset.query.first() is not None:
        logger.info("Assets already present, skipping demo assets")
        return

    unit_ids = {code: unit.id for code, unit in units.items()}
    lines = ["name,category,unit_id,value,purchasedate,usefullife,status"]
    lines += [row.format(**unit_ids) for row in demo_data['Assets_CSV']]

    engine = AssetLifecycleEngine.from_app(identity=StaticIdentity(system_user))
    result = engine.validate_and_import("\n".join(lines))
    if not result.ok:
        raise RuntimeError(f"Demo assets rejected: {[str(e) for e in result.errors]}")
    logger.info(f"Inserted {len(result.created)} demo assets")


def build_database(app=None, seed_demo_data=False):
    """
    Main build entry point

    Args:
        app: Flask app to build in (default: a new app from the environment)
        seed_demo_data (bool): Also insert demo units, users and assets
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (demo data: {seed_demo_data})")
        build_models()
        insert_critical_data()
        if seed_demo_data:
            insert_demo_data()
        logger.info("Database build completed successfully")
