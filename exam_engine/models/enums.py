from enum import Enum

class QuestionKind(str, Enum):
    """The question formats a session can grade."""
    SINGLE_CHOICE = "single-choice"
    TRUE_FALSE = "true-false"
    FREE_TEXT = "free-text"

class SessionStatus(str, Enum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    COMPLETED = "completed"

class PacePreference(str, Enum):
    SLOW = "slow"
    MEDIUM = "medium"
    FAST = "fast"

class AccommodationType(str, Enum):
    """Named support features that can be switched on for a session."""
    EXTENDED_TIME = "extendedTime"
    VISUAL_AIDS = "visualAids"
    SIMPLIFIED_LANGUAGE = "simplifiedLanguage"
    AUDIO_SUPPORT = "audioSupport"
    BREAKDOWNS = "breakdowns"
    STEP_BY_STEP = "stepByStep"

class SkillLevel(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

class FeedbackType(str, Enum):
    ENCOURAGEMENT = "encouragement"
    HINT = "hint"
    EXPLANATION = "explanation"
    SUGGESTION = "suggestion"
