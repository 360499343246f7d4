# walksense/authentication/seed.py
import json
from sqlalchemy.exc import SQLAlchemyError
from walksense import timeutils
from walksense.init_db import db
from walksense.authentication.models import User
from walksense.authentication.views import create_linked_accounts, hash_password
from walksense.logging_config import setup_logging

logger = setup_logging()


def load_seed_accounts(json_path):
    if not json_path:
        return []
    try:
        with open(json_path, 'r') as f:
            return json.load(f).get('accounts', [])
    except FileNotFoundError:
        logger.info("Seed accounts file not found; skipping demo accounts.")
    except json.JSONDecodeError:
        logger.error("Error decoding the seed accounts JSON file.")
    return []


def create_seed_accounts(accounts):
    """Create each listed guardian/PWD pair unless the guardian already exists."""
    created = 0
    try:
        for account in accounts:
            guardian = dict(account['guardian'])
            if User.query.filter_by(email=guardian['email']).first() is not None:
                logger.info(f"Seed guardian '{guardian['email']}' already exists.")
                continue

            guardian['password_hash'] = hash_password(guardian.pop('password'))
            create_linked_accounts(guardian, account['pwd'], timeutils.utcnow())
            created += 1
            logger.info(f"Seed guardian '{guardian['email']}' created successfully.")

        db.session.commit()
    except (KeyError, TypeError) as e:
        db.session.rollback()
        logger.error(f"Malformed seed account entry: {e}")
        return 0
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Database error when creating seed accounts: {e}")
        return 0
    return created
