"""Move stored waiting times from the retired minute ranges to malo / normal / bueno."""
import sys
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import text

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
load_dotenv()

from app.db.models import SurveyResponse, in_check
from app.db.postgres import async_session
from app.surveys.repository import SurveyResponseRepository
from app.surveys.vocabulary import LEGACY_WAITING_TIME_MIGRATION, WaitingTime

logger = logging.getLogger(__name__)

TABLE = SurveyResponse.__tablename__
CONSTRAINT = "survey_responses_waiting_time_check"


async def migrate() -> int:
    async with async_session() as session:
        # One transaction: a failed update leaves the old constraint in place
        await session.execute(text(f"ALTER TABLE {TABLE} DROP CONSTRAINT IF EXISTS {CONSTRAINT}"))

        migrated = await SurveyResponseRepository(session).migrate_legacy_waiting_times()

        await session.execute(text(
            f"ALTER TABLE {TABLE} ADD CONSTRAINT {CONSTRAINT} CHECK ({in_check('waiting_time', WaitingTime)})"
        ))
        await session.commit()
    return migrated


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info(f"Migrating waiting times: {LEGACY_WAITING_TIME_MIGRATION}")
    count = asyncio.run(migrate())
    logger.info(f"Migrated {count} survey responses")
