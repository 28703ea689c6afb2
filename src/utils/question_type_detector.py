"""
Keyword classifier for EQAO source questions.

Runs BEFORE prompt composition to pick the category-specific template and to
tell the diagram synthesizer whether figures are expected. Pure and offline:
unmatched text falls through to the "mixed" category.
"""

from typing import List, Tuple

from utils.question_models import QuestionType, QuestionTypeAnalysis


_VISUAL_WORDS = ("diagram", "graph", "table", "chart", "figure", "shown")

GEOMETRY_KEYWORDS = (
    "triangle",
    "circle",
    "semicircle",
    "rectangle",
    "square",
    "angle",
    "degrees",
    "perimeter",
    "area",
    "volume",
    "diameter",
    "radius",
    "inscribed",
    "circumscribed",
    "parallel",
    "perpendicular",
    "congruent",
    "similar",
    "polygon",
    "quadrilateral",
)

ALGEBRA_KEYWORDS = (
    "solve",
    "equation",
    "variable",
    "x =",
    "y =",
    "linear",
    "quadratic",
    "expression",
    "simplify",
    "factor",
    "expand",
    "substitute",
)

GRAPH_KEYWORDS = (
    "graph",
    "plot",
    "coordinate",
    "axis",
    "axes",
    "slope",
    "intercept",
    "line",
    "curve",
    "point",
    "ordered pair",
)

TABLE_KEYWORDS = (
    "table",
    "chart",
    "data",
    "frequency",
    "mean",
    "median",
    "mode",
    "statistics",
    "probability",
)

FRACTION_KEYWORDS = ("fraction", "/", "numerator", "denominator", "divide", "quotient")

EXPONENT_KEYWORDS = ("exponent", "power", "squared", "cubed", "^", "raised to")

PERCENTAGE_KEYWORDS = ("percent", "%", "percentage", "discount", "tax", "interest")


def _matches(text: str, keywords: Tuple[str, ...]) -> List[str]:
    # dict.fromkeys keeps first-seen order while dropping duplicates
    return list(dict.fromkeys(k for k in keywords if k in text))


def detect_question_type(question_text: str, has_image: bool) -> QuestionTypeAnalysis:
    """
    Classify a source question.

    Args:
        question_text: The source question as submitted (or extracted from an image)
        has_image: Whether the admin attached an image

    Returns:
        QuestionTypeAnalysis with type, has_visual, concept and matched keywords
    """
    text = (question_text or "").lower()
    has_visual = has_image or any(word in text for word in _VISUAL_WORDS)

    geometry = _matches(text, GEOMETRY_KEYWORDS)
    algebra = _matches(text, ALGEBRA_KEYWORDS)
    graph = _matches(text, GRAPH_KEYWORDS)
    table = _matches(text, TABLE_KEYWORDS)
    fractions = _matches(text, FRACTION_KEYWORDS)
    exponents = _matches(text, EXPONENT_KEYWORDS)
    percentage = _matches(text, PERCENTAGE_KEYWORDS)

    # Priority order: the most specialised prompt wins on ambiguous questions
    if has_visual and geometry:
        question_type, concept, keywords = (
            QuestionType.GEOMETRY_WITH_DIAGRAM,
            "geometry with visual diagrams",
            geometry,
        )
    elif graph:
        question_type, concept, keywords = QuestionType.GRAPH, "graph analysis", graph
    elif table:
        question_type, concept, keywords = QuestionType.TABLE, "data analysis", table
    elif len(geometry) > 2:
        question_type, concept, keywords = (
            QuestionType.GEOMETRY_WITH_DIAGRAM,
            "geometry",
            geometry,
        )
    elif len(algebra) > 1:
        question_type, concept, keywords = (
            QuestionType.ALGEBRA,
            "algebraic equations",
            algebra,
        )
    elif len(fractions) > 1:
        question_type, concept, keywords = (
            QuestionType.FRACTIONS,
            "fraction operations",
            fractions,
        )
    elif exponents:
        question_type, concept, keywords = (
            QuestionType.EXPONENTS,
            "exponent operations",
            exponents,
        )
    elif percentage:
        question_type, concept, keywords = (
            QuestionType.PERCENTAGE,
            "percentage calculations",
            percentage,
        )
    else:
        question_type, concept, keywords = QuestionType.MIXED, "general mathematics", []

    return QuestionTypeAnalysis(
        type=question_type,
        has_visual=has_visual,
        concept=concept,
        keywords=keywords,
    )
