"""
Exceptions raised by the question generation pipeline.

SourceMaterialError is an input problem and is never retried. GenerationError
covers upstream model failures (after retries) and output-shape problems.
Diagram failures never surface as exceptions.
"""


class SourceMaterialError(ValueError):
    """The admin-supplied source question is missing, too short or too long."""


class GenerationError(Exception):
    """The model could not produce a usable set of practice questions."""


class InvalidCountError(GenerationError):
    """The model returned something other than exactly 10 questions."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {expected} questions, got {actual}")


class MalformedQuestionError(GenerationError):
    """A generated question is missing its text or its answer."""

    def __init__(self, question_number: int, missing: str):
        self.question_number = question_number
        self.missing = missing
        super().__init__(
            f"Invalid question format: question {question_number} is missing {missing}"
        )
