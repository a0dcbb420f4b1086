"""Entry point: print the persisted profile of a user as JSON"""
import argparse
import json
import logging
import sys

from radio_progression.config import settings
from radio_progression.db import db
from radio_progression.models.identity import UserSession
from radio_progression.services.storage import UserProfileStore
from radio_progression.utils.json_encoder import DateTimeEncoder

logger = logging.getLogger(__name__)

def run(argv=None) -> int:
    """Dump one user's profile snapshot, or the current identity when no user is given."""
    parser = argparse.ArgumentParser(prog='radio_progression', description=run.__doc__)
    parser.add_argument('username', nargs='?', help="user whose profile to print")
    parser.add_argument('--database-url', default=None, help="overrides DATABASE_URL")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.LOG_LEVEL, format='%(message)s')
    try:
        db.init(args.database_url)
        store = UserProfileStore(db)
        username = args.username or store.get_current_identity()
        if not username:
            logger.error("No username given and nobody is logged in")
            return 1

        snapshot = store.load(UserSession(username))
        print(json.dumps(snapshot, cls=DateTimeEncoder, indent=2))
        return 0
    except Exception as e:
        logger.error(f"Error reading profile: {e}")
        return 1
    finally:
        db.dispose()

if __name__ == "__main__":
    sys.exit(run())
