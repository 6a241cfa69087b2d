"""
Prompt templates for final answer synthesis, with and without
retrieved context.
"""

from __future__ import annotations

_CITED_FORMAT = (
    "Return a JSON object with:\n"
    "- answer: the answer in markdown\n"
    "- citations: list of {source_id, quote} backing the claims in "
    "the answer; quote is the short passage of the source you relied on\n"
    "- Cite only source IDs that appear in the sources.\n\n"
)

_PLAIN_FORMAT = "Reply with the answer in markdown, without citations.\n\n"


def build_answer_prompt(
    *,
    question: str,
    formatted_documents: str,
    formatted_chat_history: str,
    formatted_messages: str,
    current_timestamp: str,
    workspace_name: str,
    user_name: str,
    user_email: str,
    cited: bool = True,
) -> tuple[str, str]:
    """
    Build the system and user prompts for an answer.

    With ``cited=False`` the model is asked for plain markdown instead
    of a JSON answer with citations.

    Returns:
        (system_prompt, user_prompt)
    """
    system_prompt = (
        f"You are the assistant of the '{workspace_name or 'workspace'}' "
        "workspace.  Answer using ONLY the provided sources.\n\n"
        f"{_CITED_FORMAT if cited else _PLAIN_FORMAT}"
        "Rules:\n"
        "- If the sources do not contain the answer, say so plainly.\n"
        "- Do NOT fabricate facts, names or numbers.\n"
        f"\nCurrent time: {current_timestamp}\n"
        f"User: {user_name or 'unknown'} <{user_email or 'unknown'}>"
    )

    user_parts = []
    if formatted_chat_history:
        user_parts.append(f"## CONVERSATION HISTORY\n{formatted_chat_history}")
    if formatted_messages:
        user_parts.append(f"## PREVIOUS ASSISTANT MESSAGES\n{formatted_messages}")
    user_parts.append(f"## SOURCES\n{formatted_documents or 'No sources found.'}")
    user_parts.append(f"## QUESTION\n{question}")
    return system_prompt, "\n\n".join(user_parts)


def build_no_context_prompt(question: str, chat_history: str) -> tuple[str, str]:
    system_prompt = (
        "You are a helpful workspace assistant.  This question does not "
        "need workspace content; answer it directly and concisely from "
        "general knowledge and the conversation so far."
    )
    user_parts = []
    if chat_history:
        user_parts.append(f"## CONVERSATION HISTORY\n{chat_history}")
    user_parts.append(f"## QUESTION\n{question}")
    return system_prompt, "\n\n".join(user_parts)
