"""
Prompt templates used at ingestion time: chunk context enrichment and
document summarization.
"""

from __future__ import annotations


def build_chunk_enrichment_prompt(chunk: str, full_text: str, node_type: str) -> tuple[str, str]:
    system_prompt = (
        f"You situate a chunk of a {node_type} within its whole document "
        "to improve search retrieval.\n"
        "Write one or two sentences of context (what the document is, "
        "where this chunk sits in it, which entities it concerns).  "
        "Output only that context, without repeating the chunk."
    )
    user_prompt = f"## FULL DOCUMENT\n{full_text}\n\n## CHUNK\n{chunk}"
    return system_prompt, user_prompt


def build_summarization_prompt(text: str, query: str) -> tuple[str, str]:
    system_prompt = (
        "Summarize the text, keeping every detail relevant to the query "
        "(names, numbers, dates, decisions).  Drop the rest.  Do not add "
        "information that is not in the text."
    )
    user_prompt = f"## QUERY\n{query}\n\n## TEXT\n{text}"
    return system_prompt, user_prompt
