"""
Prompt templates for EQAO practice-question generation.

get_system_prompt_for_type() picks a category-specific instruction block on
top of a shared base (formatting rules, 10-question structure, difficulty
bands). build_user_prompt() restates the source question for the user turn.
"""

from textwrap import dedent
from typing import Dict

from utils.question_models import QuestionType, QuestionTypeAnalysis, QUESTIONS_PER_TEST
from utils.source_material import SourceMaterial


BASE_PROMPT = dedent(
    f"""
    You are an expert EQAO math examiner specializing in Grade 9 Ontario curriculum mathematics. Your task is to generate EQAO-style math questions that demonstrate deep understanding and consistent concept application.

    CRITICAL FORMATTING RULES:
    - Write ALL mathematical expressions in plain text format, NOT LaTeX
    - Use standard mathematical notation that can be read as plain text
    - For fractions, write as: (a/b) or a/b, NOT \\frac{{a}}{{b}}
    - For exponents, write as: x^2 or x squared, NOT x^{{2}}
    - For angles, write as: 45 degrees or 45°, NOT 45^\\circ
    - For square roots, write as: sqrt(x) or square root of x, NOT \\sqrt{{x}}
    - DO NOT use any LaTeX commands
    - Keep all text readable and clear without special formatting

    CRITICAL QUESTION STRUCTURE AND DIFFICULTY PROGRESSION:
    - Questions 1-2: VERY EASY - Direct, straightforward application. Simple numbers, immediate recognition.
    - Questions 3-4: MEDIUM - Same concept with more complex numbers or one additional step.
    - Questions 5-7: TOUGH - Application-oriented word problems with real-world scenarios.
    - Questions 8-10: MORE TOUGH - Highly complex application-oriented word problems with multi-step reasoning.
    - Questions 5-10 MUST be real-world word problems.

    Return your response as a JSON object with a "questions" array with exactly {QUESTIONS_PER_TEST} questions.
    """
).strip()


GEOMETRY_PROMPT = dedent(
    """
    GEOMETRY WITH DIAGRAMS - CRITICAL REQUIREMENTS:

    1. CONCEPT ANALYSIS:
       - Identify the EXACT geometric concept (e.g., angle relationships, area formulas, triangle properties, circle theorems, etc.)
       - Understand the visual relationship shown in the source diagram
       - Extract all relevant measurements, angles, and relationships

    2. QUESTION VARIETY (CRITICAL - EACH QUESTION MUST BE DIFFERENT):
       - Question 1-2: Ask about DIFFERENT aspects - maybe find a different angle, a side length, or a simple property
       - Question 3-4: Combine the concept with basic calculations - maybe find area, perimeter, or use the concept to solve for a different variable
       - Question 5-7: Real-world applications with the same concept but different scenarios (e.g., different shapes, different contexts)
       - Question 8-10: Complex multi-step problems that use the concept along with other geometric principles

    3. DIAGRAM DESCRIPTIONS:
       - Each question MUST describe a UNIQUE diagram/scenario
       - Provide detailed descriptions: shapes, measurements, angle labels, relationships
       - Make each diagram description different but related to the same core concept
       - Include specific measurements and labels in your descriptions (e.g., "diameter of 14 cm", "one angle is 35 degrees")

    4. ANSWER VARIETY:
       - DO NOT make all answers the same! Each question should have a DIFFERENT answer
       - Vary what is being asked: different angles, different lengths, different areas, etc.
       - Never ask for the same angle or the same length twice
       - The concept stays the same, but what you're solving for should vary

    5. COMPLEXITY PROGRESSION:
       - Q1-2: Simple direct questions (e.g., "What is angle x?" with easy numbers)
       - Q3-4: Slightly more complex (e.g., "If angle A is X, what is the area?")
       - Q5-7: Word problems (e.g., "A garden has... calculate...")
       - Q8-10: Multi-step complex problems (e.g., "Given... and... find...")

    EXAMPLE FOR TRIANGLE IN SEMICIRCLE:
    - Q1: Find the other base angle (not always 90!)
    - Q2: Find the arc length or chord length
    - Q3: Calculate area of the triangle
    - Q4: Find the radius given certain measurements
    - Q5-7: Real-world applications with different scenarios
    - Q8-10: Complex problems combining multiple concepts
    """
).strip()

GRAPH_PROMPT = dedent(
    """
    GRAPH ANALYSIS - CRITICAL REQUIREMENTS:

    1. Analyze the graph type (line graph, bar chart, scatter plot, etc.)
    2. Identify axes, scales, data points, trends
    3. Generate questions about:
       - Q1-2: Reading values from the graph
       - Q3-4: Calculating slopes, rates, or simple relationships
       - Q5-7: Interpreting trends and making predictions
       - Q8-10: Complex analysis combining multiple data points or trends
    4. Describe every graph in words inside the question text (axes, scale, key points)
    """
).strip()

TABLE_PROMPT = dedent(
    """
    TABLE/DATA ANALYSIS - CRITICAL REQUIREMENTS:

    1. Analyze the table structure and data relationships
    2. Generate questions about:
       - Q1-2: Reading values from the table
       - Q3-4: Calculating means, medians, or simple statistics
       - Q5-7: Analyzing patterns and relationships
       - Q8-10: Complex data analysis and predictions
    3. Write every table row out in plain text inside the question text
    """
).strip()

ALGEBRA_PROMPT = dedent(
    """
    ALGEBRA - CRITICAL REQUIREMENTS:

    1. Identify the algebraic concept (solving equations, simplifying expressions, etc.)
    2. Generate questions with:
       - Q1-2: Simple substitution or basic solving
       - Q3-4: More complex equations with multiple steps
       - Q5-7: Word problems requiring equation setup
       - Q8-10: Complex multi-step algebraic problems
    3. Only the numbers and the context change - the algebraic concept stays the same in all 10 questions
    """
).strip()

NUMBER_OPERATIONS_PROMPT = dedent(
    """
    NUMBER OPERATIONS - CRITICAL REQUIREMENTS:

    1. Identify the exact operation type
    2. Generate questions with:
       - Q1-2: Simple direct calculations
       - Q3-4: Slightly more complex numbers
       - Q5-7: Word problems with real-world contexts
       - Q8-10: Complex multi-step problems
    3. Difficulty grows through numeric complexity and context only - the operation MUST NOT change across the 10 questions
    """
).strip()

GENERAL_PROMPT = dedent(
    """
    GENERAL MATHEMATICS - CRITICAL REQUIREMENTS:

    1. Deeply analyze the source question's core concept
    2. Generate 10 questions that:
       - Use the same concept throughout
       - Progressively increase in complexity
       - Have varied answers (not all the same!)
       - Apply the concept in different ways
    """
).strip()

VISUAL_PROMPT = dedent(
    """
    VISUAL CONTENT:
    - The source material contains a diagram, graph, table or figure
    - Students only see text and an optional small diagram, so describe every visual element in words inside the question text
    - State every measurement, label and data value explicitly
    """
).strip()


CATEGORY_PROMPTS: Dict[QuestionType, str] = {
    QuestionType.GEOMETRY_WITH_DIAGRAM: GEOMETRY_PROMPT,
    QuestionType.GRAPH: GRAPH_PROMPT,
    QuestionType.TABLE: TABLE_PROMPT,
    QuestionType.ALGEBRA: ALGEBRA_PROMPT,
    QuestionType.FRACTIONS: NUMBER_OPERATIONS_PROMPT,
    QuestionType.EXPONENTS: NUMBER_OPERATIONS_PROMPT,
    QuestionType.EQUATIONS: NUMBER_OPERATIONS_PROMPT,
    QuestionType.PERCENTAGE: NUMBER_OPERATIONS_PROMPT,
    QuestionType.NUMBER_OPERATIONS: NUMBER_OPERATIONS_PROMPT,
}


def get_system_prompt_for_type(question_type, has_visual: bool) -> str:
    """
    Get the system prompt for a detected question type.

    Unknown types (including plain strings that are not a QuestionType value)
    get the general mathematics template.
    """
    try:
        question_type = QuestionType(question_type)
    except ValueError:
        question_type = QuestionType.MIXED

    sections = [BASE_PROMPT, CATEGORY_PROMPTS.get(question_type, GENERAL_PROMPT)]
    if has_visual:
        sections.append(VISUAL_PROMPT)
    return "\n\n".join(sections)


IMAGE_CONTEXT_PROMPT = dedent(
    """
    CRITICAL: The source question includes an IMAGE/DIAGRAM.
    - Analyze the visual elements in the image VERY CAREFULLY
    - Identify ALL shapes, angles, measurements, labels, and relationships shown
    - Understand the EXACT geometric principle or concept demonstrated
    - Extract all numerical values and relationships from the diagram
    - This visual information is ESSENTIAL for generating appropriate questions
    """
).strip()

GEOMETRY_VARIETY_PROMPT = dedent(
    """
    CRITICAL - QUESTION VARIETY REQUIREMENT:
    You MUST generate questions that ask for DIFFERENT things, not just the same answer with different numbers!

    For geometry questions, vary what is being asked:
    - Question 1-2: Ask about DIFFERENT angles, lengths, or simple properties (NOT always the same angle!)
    - Question 3-4: Ask about areas, perimeters, or other derived quantities
    - Question 5-7: Real-world applications asking for different measurements or calculations
    - Question 8-10: Complex problems combining multiple concepts

    EXAMPLE - If source asks about angle in semicircle:
    - Q1: Find the OTHER base angle (not the 90-degree one)
    - Q2: Find the arc length or chord length
    - Q3: Calculate the area of the triangle
    - Q4: Find the radius given certain measurements
    - Q5-7: Different real-world scenarios
    - Q8-10: Complex multi-step problems

    DO NOT make all questions ask for the same thing! Each question should have a UNIQUE answer.
    """
).strip()

CONCEPT_RULES_PROMPT = dedent(
    """
    CRITICAL ANALYSIS REQUIRED:
    1. What is the CORE mathematical concept in this source question? (e.g., squaring fractions, solving equations, calculating areas, working with angles in triangles, etc.)
    2. What formula or method is being used? (Identify the exact mathematical operation/formula)
    3. What is the mathematical topic? (e.g., fractions, algebra, geometry, number operations, etc.)
    4. What is the calculation pattern? (How is the answer derived?)

    CONCEPT EXTRACTION (MOST IMPORTANT):
    - Source: "What is (-7/4)^2?" -> Concept: Squaring fractions -> ALL 10 questions must involve squaring fractions
    - Source: "Solve 2x + 5 = 13" -> Concept: Solving linear equations -> ALL 10 questions must involve solving linear equations
    - Source: "Area of rectangle with length 5 and width 3" -> Concept: Area = length x width -> ALL 10 questions must use this formula
    - Source: "What is 25% of 80?" -> Concept: Percentage calculations -> ALL 10 questions must involve percentages

    DIFFICULTY PROGRESSION (MANDATORY):

    QUESTIONS 1-2: VERY EASY
    - Direct, straightforward application of the source concept
    - Simple numbers, NO word problems - just direct calculation
    - Example format: "What is the value of (2/3)^2?" or "Calculate (-1/4)^2"

    QUESTIONS 3-4: MEDIUM
    - Same concept with slightly more complex numbers, may require one additional step
    - NO word problems - still direct application
    - Example format: "Find the value of ((-5/7)^2)" or "What is (-3/8)^2?"

    QUESTIONS 5-7: TOUGH (MUST BE WORD PROBLEMS)
    - Application-oriented word problems with real-world scenarios (areas, volumes, scaling, measurements)
    - Example format: "A square tile has a side length of (2/5) meters. What is the area of the tile?"

    QUESTIONS 8-10: MORE TOUGH (MUST BE COMPLEX WORD PROBLEMS)
    - Highly complex, multi-step real-world scenarios that stay true to the source concept
    - Example format: "A photograph is enlarged so that its new dimensions are (3/4) times the original. If the original area was 64 square centimeters, what is the area of the enlarged photograph?"

    ADDITIONAL RULES:
    - Complexity increases through harder numbers, multi-step reasoning and real-world application - NOT by changing the core concept
    - Each question must have a clear, correct answer in plain text format
    - Include explanations for questions 5-10
    - If the source question includes multiple choice answers, extract the correct answer from it
    - Write all mathematical expressions in plain text - use (a/b) for fractions, x^2 for exponents, sqrt(x) for square roots
    - **MOST IMPORTANT**: Each question must have a DIFFERENT answer. For geometry ask for different angles, lengths, areas and perimeters; for algebra use different variable values; for other topics produce different numerical results
    """
).strip()

RESPONSE_FORMAT_PROMPT = dedent(
    """
    Return the response as a JSON object with a "questions" array of exactly 10 items, numbered 1 through 10:
    {
      "questions": [
        {
          "question_number": 1,
          "question_text": "Full question text here...",
          "correct_answer": "The correct answer",
          "difficulty_level": 1,
          "explanation": "Optional explanation"
        }
      ]
    }
    Ensure the JSON is valid and parseable.
    """
).strip()


def build_user_prompt(source: SourceMaterial, analysis: QuestionTypeAnalysis) -> str:
    """Compose the user turn: source question, answer, explanation and type-specific directives."""
    parts = [
        f"Generate {QUESTIONS_PER_TEST} EQAO-style math questions based on the following source question.",
        "You must deeply understand the source question's concept and generate 10 questions that all use that SAME concept with progressive difficulty AND VARIED ANSWERS.",
        f"DETECTED QUESTION TYPE: {analysis.type.value.upper()}\nCORE CONCEPT: {analysis.concept}",
    ]
    if analysis.keywords:
        parts.append(f"KEYWORDS: {', '.join(analysis.keywords)}")

    parts.append(
        f"SOURCE QUESTION (may include multiple choice answers):\n{source.question}"
    )

    if source.has_extracted_answer:
        parts.append(f"SOURCE ANSWER:\n{source.answer}")
    else:
        parts.append(
            "Note: The correct answer should be extracted from the source question above."
        )

    if source.explanation:
        parts.append(f"SOURCE EXPLANATION:\n{source.explanation}")

    if source.has_image:
        parts.append(IMAGE_CONTEXT_PROMPT)
        parts.append(
            "For geometry/visual questions: Each question should describe a DIFFERENT diagram/scenario but use the SAME core concept."
        )

    if analysis.type == QuestionType.GEOMETRY_WITH_DIAGRAM:
        parts.append(GEOMETRY_VARIETY_PROMPT)

    parts.append(CONCEPT_RULES_PROMPT)
    parts.append(RESPONSE_FORMAT_PROMPT)
    return "\n\n".join(parts)
