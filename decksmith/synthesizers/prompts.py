"""
Prompt and response schema for model-backed deck synthesis.
"""

from google.genai import types

SYSTEM_INSTRUCTION = "You are an elite Presentation Architect. Output valid JSON only."

DECK_PROMPT_TEMPLATE = """Your task is to transform the provided document into three distinct presentation decks.

CRITICAL REQUIREMENT:
- Incorporate EACH AND EVERY piece of data from the source where possible.
- DO NOT SUMMARIZE if it causes loss of detail. Include all statistics, names, facts and figures.
- If the document is dense, create MORE slides to accommodate the text. Do not compress it.
- Only request an image if the slide warrants a visual scene or illustration.
- Slides with diagramType bar_chart, pie_chart, process_flow or timeline carry data: leave their imagePrompt empty so the chart keeps its space.

SOURCE DOCUMENT:
{context}

TASK:
Generate 3 separate slide decks. Each deck must cover the ENTIRETY of the source data with a different strategic angle:
1. "executiveDeck": ROI, outcomes, business impact and strategic decisions.
2. "creativeDeck": narrative-driven, metaphors, vision, future and human impact.
3. "technicalDeck": granular data, methodology, implementation specifics and rigorous facts.

FOR EACH SLIDE in each deck, provide:
- title: strong, descriptive headline.
- bullets: 6-10 detailed points containing specific numbers and facts from the text.
- category: section header.
- diagramType: one of 'text', 'bar_chart', 'pie_chart', 'process_flow', 'timeline'.
- imagePrompt: (OPTIONAL) a specific, photorealistic image prompt describing a visual scene. Return an empty string if the slide should focus on text or data.

OUTPUT FORMAT: JSON object containing 3 arrays: executiveDeck, creativeDeck, technicalDeck.
"""

DECK_KEYS = ("executiveDeck", "creativeDeck", "technicalDeck")


def build_prompt(context: str) -> str:
    return DECK_PROMPT_TEMPLATE.format(context=context)


def build_response_schema() -> types.Schema:
    """Schema constraining the reply to three arrays of slide records."""
    slide_schema = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "bullets": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
            ),
            "category": types.Schema(type=types.Type.STRING),
            "diagramType": types.Schema(
                type=types.Type.STRING,
                enum=["text", "bar_chart", "pie_chart", "process_flow", "timeline"],
            ),
            "imagePrompt": types.Schema(type=types.Type.STRING, nullable=True),
        },
        required=["title", "bullets", "category", "diagramType"],
    )
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            key: types.Schema(type=types.Type.ARRAY, items=slide_schema) for key in DECK_KEYS
        },
        required=list(DECK_KEYS),
    )
