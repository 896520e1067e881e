import json

import pytest

from quizblitz.utils.quiz_parser import InvalidJSONError, QuizFormatError, parse_quiz_json
from quizblitz.utils.quiz_prompt import build_quiz_prompt


def question(answer=2, options=None, text="Where does photosynthesis happen?"):
    return {
        "question": text,
        "options": options if options is not None else ["Mitochondria", "Nucleus", "Chloroplast", "Ribosome"],
        "answer": answer,
    }


def test_parses_plain_json_with_index_answers():
    drafts = parse_quiz_json(json.dumps([question(2), question(0)]))
    assert [d.correct_answer for d in drafts] == [2, 0]
    assert drafts[0].options[2] == "Chloroplast"


def test_accepts_letter_answers():
    drafts = parse_quiz_json(json.dumps([question("c"), question(" A ")]))
    assert [d.correct_answer for d in drafts] == [2, 0]


def test_strips_markdown_fences_and_prose():
    raw = "Here you go!\n```json\n" + json.dumps([question(1)]) + "\n```\nGood luck."
    assert parse_quiz_json(raw)[0].correct_answer == 1


def test_fixes_trailing_commas():
    raw = '[{"question": "2+2?", "options": ["3", "4", "5", "6"], "answer": 1,},]'
    assert parse_quiz_json(raw)[0].question_text == "2+2?"


def test_empty_response_is_invalid_json():
    with pytest.raises(InvalidJSONError):
        parse_quiz_json("   ")


def test_garbage_is_invalid_json():
    with pytest.raises(InvalidJSONError):
        parse_quiz_json("I could not create a quiz from that lesson.")


def test_object_instead_of_array_is_rejected():
    with pytest.raises(QuizFormatError):
        parse_quiz_json(json.dumps(question()))


@pytest.mark.parametrize("bad", [
    question(options=["a", "b", "c"]),
    question(options=["a", "b", "", "d"]),
    question(answer=4),
    question(answer="E"),
    question(answer=True),
    question(text="  "),
    {"question": "missing options", "answer": 1},
])
def test_invalid_questions_are_rejected(bad):
    with pytest.raises(QuizFormatError):
        parse_quiz_json(json.dumps([question(), bad]))


def test_prompt_mentions_count_and_lesson():
    prompt = build_quiz_prompt("Plants turn light into chemical energy.", 7)
    assert "exactly 7 multiple-choice questions" in prompt
    assert "Plants turn light into chemical energy." in prompt
