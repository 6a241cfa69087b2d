"""
Prompt template for the deep-search evaluate-and-refine step.
"""

from __future__ import annotations


def build_evaluate_and_refine_prompt(
    query: str,
    sources: str,
    chat_history: str,
) -> tuple[str, str]:
    system_prompt = (
        "You are the planner of an iterative research loop.  Judge "
        "whether the sources gathered so far are enough to answer the "
        "query completely and accurately.\n\n"
        "Return a JSON object with:\n"
        "- sufficient: true if the sources answer the query\n"
        "- identified_gaps: list of missing facts or angles\n"
        "- refined_query: when not sufficient, a new "
        "{semantic_query, keyword_query} that targets the gaps; null "
        "otherwise\n\n"
        "Rules:\n"
        "- The refined query must differ from queries already tried.\n"
        "- Do not invent facts that are not in the sources.\n"
    )
    user_parts = []
    if chat_history:
        user_parts.append(f"## CONVERSATION HISTORY\n{chat_history}")
    user_parts.append(f"## QUERY\n{query}")
    user_parts.append(f"## SOURCES GATHERED\n{sources or 'None yet.'}")
    return system_prompt, "\n\n".join(user_parts)
