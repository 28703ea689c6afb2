"""
Plain-text cleanup for model output.

Generated questions are shown as plain text, so any LaTeX the model slips in
is rewritten to the notation the prompts ask for: (a)/(b), x^2, sqrt(x),
45°. clean_latex is idempotent.
"""

import re
from typing import Optional


_MAX_PASSES = 20

# Applied in order on every pass
_LATEX_RULES = [
    # Delimiters
    (re.compile(r"\\\("), ""),
    (re.compile(r"\\\)"), ""),
    (re.compile(r"\\\["), ""),
    (re.compile(r"\\\]"), ""),
    # Fractions
    (re.compile(r"\\[dt]?frac\{([^{}]+)\}\{([^{}]+)\}"), r"(\1)/(\2)"),
    # Sizing commands
    (re.compile(r"\\left\("), "("),
    (re.compile(r"\\right\)"), ")"),
    (re.compile(r"\\left\["), "["),
    (re.compile(r"\\right\]"), "]"),
    # Roots
    (re.compile(r"\\sqrt\{([^{}]+)\}"), r"sqrt(\1)"),
    (re.compile(r"\\sqrt\[([^\]]+)\]\{([^{}]+)\}"), r"sqrt[\1](\2)"),
    # Degrees
    (re.compile(r"\^\s*\{\s*\\circ\s*\}"), "°"),
    (re.compile(r"\^\s*\\circ"), "°"),
    (re.compile(r"\\circ|\\degree"), "°"),
    # Exponents with braces
    (re.compile(r"\^\{(\w+)\}"), r"^\1"),
    (re.compile(r"\^\{([^{}]+)\}"), r"^(\1)"),
    # Text and common operators
    (re.compile(r"\\(?:text|mathrm|textbf)\{([^{}]*)\}"), r"\1"),
    (re.compile(r"\\times"), "×"),
    (re.compile(r"\\div"), "÷"),
    (re.compile(r"\\cdot"), "·"),
    (re.compile(r"\\pi"), "π"),
    (re.compile(r"\\le(?:q)?\b"), "≤"),
    (re.compile(r"\\ge(?:q)?\b"), "≥"),
    # Escaped braces and stray backslashes
    (re.compile(r"\\\{"), "{"),
    (re.compile(r"\\\}"), "}"),
    (re.compile(r"\\\\"), ""),
    (re.compile(r"\\([()\[\]])"), r"\1"),
    # Whitespace
    (re.compile(r"\s+"), " "),
]


def _clean_pass(text: str) -> str:
    for pattern, replacement in _LATEX_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


def clean_latex(text: Optional[str]) -> Optional[str]:
    """Strip LaTeX markup from text, repeating until nothing changes."""
    if not text:
        return text
    for _ in range(_MAX_PASSES):
        cleaned = _clean_pass(text)
        if cleaned == text:
            break
        text = cleaned
    return text
