from app.config import get_config
from app.database import SessionLocal
from app.dependencies import build_orchestrator, get_primary_generator
from app.services.clock import SystemClock
from app.services.repository import SqlContentRepository
from app.utils.constants import TRIGGER_SCHEDULED
from app.utils.logging import setup_logging


def main():
    logger = setup_logging()
    config = get_config()
    clock = SystemClock()

    db = SessionLocal()
    try:
        repo = SqlContentRepository(db, clock)
        orchestrator = build_orchestrator(repo, config, clock, get_primary_generator(config))
        res = orchestrator.run_pipeline(TRIGGER_SCHEDULED)
        logger.info(
            "scheduled run %s status=%s collected=%s generated=%s published=%s",
            res.run_id,
            res.status,
            res.collected,
            res.generated,
            res.published,
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
