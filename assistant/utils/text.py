"""
Text formatting helpers shared by several pipeline stages.
"""

from __future__ import annotations

from assistant.schemas.llm import CandidateDocument


def format_documents(documents: list[CandidateDocument]) -> str:
    """Render documents as source blocks keyed by source id."""
    blocks = []
    for doc in documents:
        blocks.append(
            f"<source id=\"{doc.source_id}\" type=\"{doc.source_type.value}\">\n"
            f"{doc.content.strip()}\n"
            f"</source>"
        )
    return "\n\n".join(blocks)


def truncate(text: str, limit: int, marker: str = " …") -> str:
    if len(text) <= limit:
        return text
    return text[: max(0, limit - len(marker))].rstrip() + marker
