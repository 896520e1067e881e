"""
Quiz Prompt Builder
Builds the single prompt used to generate multiple-choice questions from lesson text
FILE: quizblitz/utils/quiz_prompt.py
"""


SYSTEM_INSTRUCTION = "Return ONLY valid JSON."

EXAMPLE_SCHEMA = """[
  {
    "question": "Where in the plant cell does photosynthesis take place?",
    "options": ["Mitochondria", "Nucleus", "Chloroplast", "Ribosome"],
    "answer": 2
  },
  {
    "question": "Which gas do plants absorb during photosynthesis?",
    "options": ["Carbon dioxide", "Oxygen", "Nitrogen", "Hydrogen"],
    "answer": 0
  }
]"""


def build_quiz_prompt(lesson_text: str, num_questions: int = 10) -> str:
    """
    Build a prompt for generating quiz questions from lesson content

    Args:
        lesson_text: The lesson body the questions must be drawn from
        num_questions: Number of questions to generate (default: 10)

    Returns:
        A complete prompt string requesting a JSON array
    """
    prompt = f"""You are an expert quiz creator for educational content. Based on the lesson content below, create exactly {num_questions} multiple-choice questions that test understanding of the key concepts.

STRICT FORMATTING RULES:
- Output ONLY a valid JSON array
- Do NOT include markdown code blocks (no ```)
- Do NOT include any explanation, preamble, or additional text
- Each question must have exactly 4 options
- The "answer" field is the index (0-3) of the correct option

GUIDELINES:
- Questions should test comprehension, not just recall
- All options should be plausible
- Vary the difficulty and cover different parts of the lesson
- Keep questions clear and concise

REQUIRED OUTPUT SCHEMA:
{EXAMPLE_SCHEMA}

LESSON CONTENT:
{lesson_text}

Generate {num_questions} questions as a JSON array. Output ONLY the JSON array, nothing else."""

    return prompt


def get_system_instruction() -> str:
    return SYSTEM_INSTRUCTION
