"""
Prompt templates for relevance ranking and database filter planning.
"""

from __future__ import annotations


def build_rerank_prompt(
    query: str,
    formatted_candidates: str,
    weighting: str,
) -> tuple[str, str]:
    system_prompt = (
        "You rank retrieved workspace content by how useful it is for "
        "answering a query.\n\n"
        "The candidates were retrieved by hybrid search "
        f"({weighting}); their listing order reflects that blended "
        "score.  Use it as a prior, but judge actual relevance to the "
        "query yourself.\n\n"
        "Return a JSON object with a `rankings` array.  Each entry has:\n"
        "- index: the candidate's number from the listing\n"
        "- score: relevance between 0 and 1, higher is better\n"
        "- type: the candidate's type\n"
        "- source_id: the candidate's ID\n\n"
        "Rules:\n"
        "- Only use index numbers that appear in the listing.\n"
        "- List each candidate at most once.\n"
        "- Omit candidates that are irrelevant.\n"
    )
    user_prompt = f"## QUERY\n{query}\n\n## CANDIDATES\n{formatted_candidates}"
    return system_prompt, user_prompt


def build_database_filter_prompt(query: str, databases_info: str) -> tuple[str, str]:
    system_prompt = (
        "You decide which structured databases may hold the answer to a "
        "query and how their records should be filtered.\n\n"
        "Return a JSON object with:\n"
        "- should_filter: false if no database is relevant\n"
        "- databases: list of {database_id, filters}, where each filter is "
        "{field_id, operator, value} and operator is one of "
        "eq, neq, contains, gt, gte, lt, lte\n\n"
        "Rules:\n"
        "- Only use database and field IDs listed below.\n"
        "- Prefer fewer, precise filters; omit filters you are unsure of.\n"
    )
    user_prompt = f"## DATABASES\n{databases_info}\n\n## QUERY\n{query}"
    return system_prompt, user_prompt
