"""
Quiz Parser
Parses and validates LLM-generated quiz JSON into question drafts
FILE: quizblitz/utils/quiz_parser.py
"""
import json
import re
import logging
from typing import Any, Dict, List

from quizblitz.models.quiz import OPTIONS_PER_QUESTION, QuestionDraft

logger = logging.getLogger(__name__)


class QuizParseError(Exception):
    """Base exception for quiz parsing errors"""
    pass


class InvalidJSONError(QuizParseError):
    """Raised when JSON cannot be parsed even after cleanup"""
    pass


class QuizFormatError(QuizParseError):
    """Raised when the parsed structure is not a valid question list"""
    pass


ANSWER_LETTERS = "ABCD"
REQUIRED_FIELDS = {"question", "options", "answer"}


def _strip_markdown(text: str) -> str:
    """Remove ```json ... ``` fences if present"""
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
    if match:
        return match.group(1).strip()
    return text.replace("```", "").strip()


def _extract_json_array(text: str) -> str:
    """
    Extract the outermost JSON array

    Raises:
        InvalidJSONError: If no array brackets are found
    """
    first_bracket = text.find("[")
    last_bracket = text.rfind("]")

    if first_bracket == -1 or last_bracket == -1 or first_bracket >= last_bracket:
        raise InvalidJSONError("No JSON array found in response")

    return text[first_bracket:last_bracket + 1]


def _fix_common_json_issues(text: str) -> str:
    # Trailing commas before ] or }
    text = re.sub(r",\s*([}\]])", r"\1", text)
    # Control characters other than newline and tab
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    # Raw newlines inside strings
    return " ".join(line.strip() for line in text.split("\n") if line.strip())


def _clean_response(raw_response: str) -> str:
    text = _strip_markdown(raw_response.strip())
    text = _extract_json_array(text)
    return _fix_common_json_issues(text)


def _parse_answer(answer: Any, index: int) -> int:
    """
    Accept either an option index (0-3) or a letter (A-D)

    Raises:
        QuizFormatError: If the answer is neither
    """
    if isinstance(answer, bool):
        raise QuizFormatError(f"Question {index + 1}: 'answer' must be 0-3 or A-D")

    if isinstance(answer, int):
        if 0 <= answer < OPTIONS_PER_QUESTION:
            return answer
    elif isinstance(answer, str):
        value = answer.strip().upper()
        if value.isdigit() and 0 <= int(value) < OPTIONS_PER_QUESTION:
            return int(value)
        if len(value) == 1 and value in ANSWER_LETTERS:
            return ANSWER_LETTERS.index(value)

    raise QuizFormatError(f"Question {index + 1}: 'answer' must be 0-3 or A-D. Got: {answer!r}")


def _validate_question(item: Dict[str, Any], index: int) -> QuestionDraft:
    """
    Validate one raw question and convert it to a QuestionDraft

    Raises:
        QuizFormatError: If validation fails
    """
    missing = REQUIRED_FIELDS - set(item.keys())
    if missing:
        raise QuizFormatError(f"Question {index + 1}: Missing required fields: {sorted(missing)}")

    text = item["question"]
    if not isinstance(text, str) or not text.strip():
        raise QuizFormatError(f"Question {index + 1}: 'question' must be a non-empty string")

    options = item["options"]
    if not isinstance(options, list):
        raise QuizFormatError(f"Question {index + 1}: 'options' must be a list")

    if len(options) != OPTIONS_PER_QUESTION:
        raise QuizFormatError(
            f"Question {index + 1}: Expected {OPTIONS_PER_QUESTION} options, got {len(options)}"
        )

    for i, opt in enumerate(options):
        if not isinstance(opt, str) or not opt.strip():
            raise QuizFormatError(f"Question {index + 1}: Option {i + 1} must be a non-empty string")

    return QuestionDraft(
        question_text=text.strip(),
        options=[opt.strip() for opt in options],
        correct_answer=_parse_answer(item["answer"], index),
    )


def parse_quiz_json(raw_response: str) -> List[QuestionDraft]:
    """
    Parse and validate quiz JSON from an LLM response

    Attempts a direct JSON parse first, then applies cleanup rules
    (markdown fences, surrounding prose, trailing commas).

    Args:
        raw_response: Raw string response from the LLM

    Returns:
        List of QuestionDraft, each with exactly 4 options

    Raises:
        InvalidJSONError: If JSON cannot be parsed after cleanup
        QuizFormatError: If the structure is invalid

    Example:
        >>> raw = '[{"question": "2+2?", "options": ["3","4","5","6"], "answer": "B"}]'
        >>> parse_quiz_json(raw)[0].correct_answer
        1
    """
    if not raw_response or not raw_response.strip():
        raise InvalidJSONError("Empty response received")

    logger.debug(f"Parsing quiz response ({len(raw_response)} chars)")

    try:
        data = json.loads(raw_response.strip())
    except json.JSONDecodeError as e:
        logger.debug(f"Direct parse failed: {e}. Attempting cleanup...")
        try:
            data = json.loads(_clean_response(raw_response))
        except json.JSONDecodeError as e2:
            logger.error(f"❌ JSON parse failed after cleanup: {e2}")
            raise InvalidJSONError(f"Failed to parse JSON: {e2}") from e2

    if not isinstance(data, list):
        raise QuizFormatError(f"Expected a JSON array, got {type(data).__name__}")

    if not data:
        raise QuizFormatError("Quiz array is empty")

    drafts = []
    for idx, item in enumerate(data):
        if not isinstance(item, dict):
            raise QuizFormatError(f"Question {idx + 1}: Expected object, got {type(item).__name__}")
        drafts.append(_validate_question(item, idx))

    logger.info(f"✅ Parsed {len(drafts)} quiz questions")
    return drafts
