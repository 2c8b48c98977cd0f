import logging

from survey_api.database import SessionLocal
from survey_api.services.access_workflow import purge_expired_tokens

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

def main():
    db = SessionLocal()
    try:
        removed = purge_expired_tokens(db)
        logger.info("Removed %d expired access tokens", removed)
    finally:
        db.close()

if __name__ == "__main__":
    main()
