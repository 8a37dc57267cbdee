# exam_engine/endpoints/users.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from exam_engine.state_manager import get_results_for_test_taker
from exam_engine.utils.db import get_db
from exam_engine.utils.logger import logger

router = APIRouter(
    tags=["Users"]
)

@router.get("/{test_taker_id}/results", response_model=List[dict])
async def get_test_taker_results(test_taker_id: str, db: AsyncSession = Depends(get_db)):
    """
    Retrieves the stored exam results of a test-taker, newest first.
    """
    logger.debug(f"Fetching results for test-taker: {test_taker_id}")
    return await get_results_for_test_taker(db, test_taker_id)
