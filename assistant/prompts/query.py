"""
Prompt templates for query understanding: intent recognition and
query rewriting.
"""

from __future__ import annotations

NO_CONTEXT_TOKEN = "no_context"
RETRIEVE_TOKEN = "retrieve"


def build_intent_prompt(question: str, chat_history: str) -> tuple[str, str]:
    system_prompt = (
        "You decide whether a question needs information from the user's "
        "workspace (pages, documents, messages, database records) to be "
        "answered.\n\n"
        f"Reply with exactly one token:\n"
        f"- {RETRIEVE_TOKEN}: the answer depends on workspace content\n"
        f"- {NO_CONTEXT_TOKEN}: general knowledge, greetings, small talk, "
        "or questions about the conversation itself\n"
        "Do not add anything else."
    )
    user_parts = []
    if chat_history:
        user_parts.append(f"## CONVERSATION HISTORY\n{chat_history}")
    user_parts.append(f"## QUESTION\n{question}")
    return system_prompt, "\n\n".join(user_parts)


def build_query_rewrite_prompt(query: str, chat_history: str) -> tuple[str, str]:
    system_prompt = (
        "You rewrite user questions into search queries.\n"
        "Produce two forms:\n"
        "1. semantic_query: a self-contained natural-language query for "
        "vector search; resolve pronouns and references using the "
        "conversation history.\n"
        "2. keyword_query: the essential terms, names and identifiers for "
        "full-text search, space separated, no stop words.\n\n"
        "Rules:\n"
        "- Do NOT add information the user didn't ask about.\n"
        "- Keep names, dates and identifiers exactly as written.\n"
    )
    user_parts = []
    if chat_history:
        user_parts.append(f"## CONVERSATION HISTORY\n{chat_history}")
    user_parts.append(f"## USER QUESTION\n{query}")
    return system_prompt, "\n\n".join(user_parts)
