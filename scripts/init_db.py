import logging
from jobboard.db.session import ENGINE
from jobboard.db.models import Base

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def main():
    logger.info("Initializing job board schema (job_submissions, jobs)...")
    Base.metadata.create_all(bind=ENGINE)
    logger.info("Database schema initialized successfully.")

if __name__ == "__main__":
    main()
