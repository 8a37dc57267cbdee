# exam_engine/utils/logger.py
# One named logger shared by the engine, the session manager and the API layer.
import logging
import sys
from exam_engine.utils.config import settings

logger = logging.getLogger("exam_engine")

# LOG_LEVEL comes from the environment; an unknown name falls back to INFO.
logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

# uvicorn --reload re-imports this module; keep a single handler.
if logger.hasHandlers():
    logger.handlers.clear()

handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(handler)

# Session timer events would otherwise be printed twice under uvicorn's root handler.
logger.propagate = False
