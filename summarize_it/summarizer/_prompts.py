"""Prompt templates for hierarchical summarization.

Every template has a single ``{content}`` placeholder for the variable text;
``split_prompt`` renders the fixed parts around it so the variable text can
be shrunk independently.
"""

from __future__ import annotations

SYSTEM_PROMPT = "You are a concise, faithful summarizer. Preserve key facts; avoid speculation."

# Short documents: summary and sentiment in one call
SINGLE_SHOT_PROMPT = """Summarize and analyze the following text in {language} language.

Rules:
- Generate a concise summary (3-6 sentences) in {language}.
- Then classify the overall sentiment as exactly one of: Positive, Neutral, Negative.

Text:
{content}""".strip()

# Map phase: one chunk of a longer document
CHUNK_SUMMARY_PROMPT = """You will summarize chunk {ordinal} of {total} in {language} language.

Rules:
- Be concise (3-6 sentences).
- Preserve facts, entities, numbers, and cause-effect.
- Do not mention this is chunk {ordinal}/{total}.
- No speculation, no hallucinations.

Chunk:
{content}""".strip()

# Reduce phase: a group of consecutive chunk summaries
GROUP_SUMMARY_PROMPT = """You are given summaries of consecutive sections {first}-{last} of {total} of a larger document.
Condense them into one summary in {language} language.

Rules:
- Keep the order of events and arguments.
- Preserve facts, entities, numbers, decisions, and outcomes.
- Avoid repetition; no speculation.

Section summaries:
{content}""".strip()

# Final synthesis over all (possibly grouped) summaries
FINAL_SUMMARY_PROMPT = """You are given multiple chunk summaries of a larger document. Produce a single cohesive final summary in {language} language.

Rules:
- Synthesize across chunks; avoid repetition.
- Keep it concise (6-10 sentences).
- Maintain fidelity to the given content only.
- Include key facts, numbers, decisions, and outcomes.

Chunk Summaries:
{content}""".strip()

# Sentiment from the opening of the original text
SENTIMENT_PROMPT = """Classify the overall sentiment of the following text.
Answer with exactly one word: Positive, Neutral, or Negative.

Text:
{content}

Sentiment:""".strip()


def split_prompt(template: str, **fields: object) -> tuple[str, str]:
    """Render ``template`` around its ``{content}`` placeholder.

    Returns:
        The rendered text before and after the placeholder.

    """
    prefix, _, suffix = template.partition("{content}")
    return prefix.format(**fields), suffix.format(**fields)
