from __future__ import annotations

MODES = ("standard", "simplified", "rigorous", "dialogue")


def normalize_mode(mode: str | None) -> str:
    m = (mode or "").strip().lower()
    return m if m in MODES else "standard"


# ----------------------------
# Mode style instructions
# ----------------------------

def _style_standard() -> str:
    return """Style: structured explanation.
- Open with a one-sentence definition, then explain how it works and why it matters.
- Use short paragraphs; an example is welcome when it clarifies."""


def _style_simplified() -> str:
    return """Style: plain language for a beginner.
- Avoid jargon; when a technical term is unavoidable, explain it in everyday words.
- Include exactly one concrete analogy from daily life."""


def _style_rigorous() -> str:
    return """Style: rigorous and precise.
- Use exact terminology, definitions, conditions and edge cases.
- Do NOT use analogies or metaphors."""


def _style_dialogue() -> str:
    return """Style: a dialogue between two speakers, A and B.
- Turns strictly alternate: A, B, A, B, ... Every turn starts on a new line with "A:" or "B:".
- A is the curious challenger: A asks questions, raises doubts and pushes back.
  A must NOT merely acknowledge ("I see", "Got it") -- every A turn asks or challenges.
- B explains and answers, staying faithful to the source.
- 4 to 8 turns in total."""


_STYLE_BUILDERS = {
    "standard": _style_standard,
    "simplified": _style_simplified,
    "rigorous": _style_rigorous,
    "dialogue": _style_dialogue,
}


def style_instructions(mode: str | None) -> str:
    return _STYLE_BUILDERS[normalize_mode(mode)]()


def content_format(mode: str | None) -> str:
    return "dialogue" if normalize_mode(mode) == "dialogue" else "plain"


# ----------------------------
# Outline
# ----------------------------

OUTLINE_TEMPLATE = """You are an expert learning designer.

Read the source material below and split it into distinct knowledge topics.
Each topic will later be expanded into one flashcard-style knowledge card.

Rules:
- Produce between {min_topics} and {max_topics} topics.
- Topics must not overlap; together they should cover the material.
- Keep the order in which topics appear in the source.
- difficulty is one of: Easy, Medium, Hard.

The cards will be written in this style (plan topics that suit it):
{style}

Output MUST be valid JSON only. No markdown, no commentary. Exact shape:
{{
  "topics": [
    {{"title": "...", "category": "...", "difficulty": "Easy"}}
  ]
}}

Source material:
{content}
"""


def build_outline_prompt(content: str, mode: str | None, min_topics: int, max_topics: int) -> str:
    return OUTLINE_TEMPLATE.format(
        min_topics=min_topics,
        max_topics=max_topics,
        style=style_instructions(mode),
        content=content,
    )


# ----------------------------
# Card
# ----------------------------

CARD_TEMPLATE = """You are an expert instructional writer.

Write ONE knowledge card about the topic below, using only the source material.

Topic: {title}
Category: {category}
Difficulty: {difficulty}

{style}

Rules:
- "body" is the explanation: 300 to 800 characters.
- "flashcard" tests understanding of the topic: a question and a 1-3 sentence answer.
- Be faithful to the source; do not invent facts.

Output MUST be valid JSON only. No markdown, no commentary. Exact shape:
{{
  "title": "...",
  "category": "...",
  "difficulty": "Easy|Medium|Hard",
  "body": "...",
  "flashcard": {{"question": "...", "answer": "..."}}
}}

Source material (excerpt):
{content}
"""


def build_card_prompt(title: str, category: str, difficulty: str, content: str, mode: str | None) -> str:
    return CARD_TEMPLATE.format(
        title=title,
        category=category or "General",
        difficulty=difficulty or "Medium",
        style=style_instructions(mode),
        content=content,
    )
