# exam_engine/services/exam_catalog.py
import json
from typing import Dict, List, Optional

from pydantic import ValidationError

from exam_engine.models.question import ExamDefinition
from exam_engine.utils.logger import logger
from exam_engine.utils.config import settings

class ExamCatalog:
    def __init__(self):
        self.exams: Dict[str, ExamDefinition] = {}
        logger.info("ExamCatalog initialized (data loading deferred).")

    def load_exams(self, json_path: Optional[str] = None):
        """Loads exam definitions from the specified JSON file, skipping invalid entries."""
        json_path = json_path if json_path is not None else settings.exams_file_path
        self.exams = {}
        try:
            with open(json_path, mode="r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            logger.error(f"Exam file not found at: {json_path}")
            return
        except json.JSONDecodeError as e:
            logger.error(f"Exam file {json_path} is not valid JSON: {e}")
            return

        entries = raw.get("exams", []) if isinstance(raw, dict) else raw
        for entry in entries:
            try:
                exam = ExamDefinition.model_validate(entry)
            except ValidationError as ve:
                logger.error(f"Skipping exam {entry.get('id', '?') if isinstance(entry, dict) else '?'}: {ve}")
                continue
            if not exam.questions:
                logger.warning(f"Skipping exam {exam.id}: it has no questions.")
                continue
            self.add_exam(exam)

        logger.info(f"Loaded {len(self.exams)} exams from {json_path}.")
        if not self.exams:
            logger.warning(f"No exams loaded from {json_path}. Check the file format and content.")

    def add_exam(self, exam: ExamDefinition):
        self.exams[exam.id] = exam

    def list_exams(self) -> List[ExamDefinition]:
        return list(self.exams.values())

    def get_exam(self, exam_id: str) -> Optional[ExamDefinition]:
        return self.exams.get(exam_id)

exam_catalog = ExamCatalog()
