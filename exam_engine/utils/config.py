# exam_engine/utils/config.py
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file before defining settings
load_dotenv()

class Settings(BaseSettings):
    log_level: str = "INFO"

    # Storage
    database_url: str = "sqlite+aiosqlite:///./exam_engine.db"
    exams_file_path: str = "data/exams.json"
    persist_results: bool = True

    # External grading endpoint
    grading_base_url: str = "http://localhost:8000/api"
    grading_timeout_seconds: float = 10.0

    # Session defaults
    default_time_allowed_minutes: int = 45
    default_initial_difficulty: float = 2.0
    timer_tick_seconds: float = 1.0
    initial_confidence_level: int = 3

    # Difficulty adjustment weights
    weight_comprehension: float = 0.30
    weight_accuracy: float = 0.30
    weight_confidence: float = 0.20
    weight_attempts: float = 0.20
    attempt_penalty: float = 0.2

    # Score tiers
    tier_increase_threshold: float = 90.0
    tier_hold_threshold: float = 75.0
    tier_small_drop_threshold: float = 60.0
    difficulty_step_up: float = 0.5
    difficulty_small_step_down: float = 0.3
    difficulty_step_down: float = 0.5
    support_difficulty_threshold: float = 2.0

    # Pace classification (seconds spent on the latest question)
    slow_pace_seconds: float = 120.0
    fast_pace_seconds: float = 60.0

    # Comprehension nudges
    comprehension_gain: float = 10.0
    comprehension_loss: float = 5.0

    # Accommodations switched on by a help request
    help_accommodations: List[str] = ["stepByStep", "visualAids"]

settings = Settings()

# --- Validation of the tier configuration ---
if not (settings.tier_increase_threshold >= settings.tier_hold_threshold >= settings.tier_small_drop_threshold):
    raise ValueError("Difficulty tier thresholds must be in descending order")
