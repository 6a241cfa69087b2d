"""
Database filter planning.

Describes each candidate database (fields + a bounded sample of
records) to the model and turns its proposal into a
DatabaseFilterResult that only references the supplied databases and
their fields.
"""

from __future__ import annotations

from typing import Any

from assistant.core.config import AiTask, Settings, get_settings
from assistant.pipeline.model_selector import resolve_model
from assistant.prompts.ranking import build_database_filter_prompt
from assistant.schemas.llm import (
    CandidateDatabase,
    DatabaseFilterOutput,
    DatabaseFilterResult,
)
from assistant.services.llm import generate_structured
from assistant.utils.logging import get_logger
from assistant.utils.text import truncate

logger = get_logger("assistant.pipeline.database_filter")

_MAX_VALUE_CHARS = 200


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value)
    return truncate(str(value), _MAX_VALUE_CHARS)


def describe_databases(databases: list[CandidateDatabase], sample_limit: int) -> str:
    """Build a human-readable description of each database's schema and samples."""
    sections = []
    for db in databases:
        fields = "\n".join(
            f"- {field.name} (ID: {field_id}, Type: {field.type})"
            for field_id, field in db.fields.items()
        )
        records = []
        for i, record in enumerate(db.sample_records[:sample_limit], start=1):
            values = ", ".join(
                f"{db.fields[field_id].name if field_id in db.fields else field_id}: "
                f"{_format_value(value)}"
                for field_id, value in record.items()
            )
            records.append(f"{i}. {values}")
        sections.append(
            f"Database: {db.name} (ID: {db.id})\n"
            f"Fields:\n{fields or '- none'}\n\n"
            f"Sample Records:\n{chr(10).join(records) or 'none'}"
        )
    return "\n\n".join(sections)


def validate_filter_output(
    output: DatabaseFilterOutput,
    databases: list[CandidateDatabase],
) -> DatabaseFilterResult:
    """Drop proposals for unknown databases or fields."""
    if not output.should_filter:
        return DatabaseFilterResult()

    known = {db.id: db for db in databases}
    result = DatabaseFilterResult()
    for proposal in output.databases:
        db = known.get(proposal.database_id)
        if db is None:
            logger.warning("Filter planner referenced unknown database: %s", proposal.database_id)
            continue
        filters = []
        for field_filter in proposal.filters:
            if field_filter.field_id not in db.fields:
                logger.warning(
                    "Filter planner referenced unknown field %s in database %s",
                    field_filter.field_id, db.id,
                )
                continue
            filters.append(field_filter)
        result.relevant_database_ids.add(db.id)
        result.field_filters[db.id] = filters
    return result


def unfiltered(databases: list[CandidateDatabase]) -> DatabaseFilterResult:
    """Every database relevant, no field filters."""
    return DatabaseFilterResult(
        relevant_database_ids={db.id for db in databases},
        field_filters={db.id: [] for db in databases},
    )


async def plan_database_filters(
    query: str,
    databases: list[CandidateDatabase],
    *,
    settings: Settings | None = None,
) -> DatabaseFilterResult:
    """
    Propose which databases and fields are relevant to *query*.

    Raises:
        MalformedOutputError: the model's output failed validation.
    """
    if not databases:
        return DatabaseFilterResult()

    settings = settings or get_settings()
    handle = resolve_model(AiTask.DATABASE_FILTER, settings=settings)
    databases_info = describe_databases(databases, settings.database_sample_records)
    system_prompt, user_prompt = build_database_filter_prompt(query, databases_info)
    output = await generate_structured(handle, system_prompt, user_prompt, DatabaseFilterOutput)

    result = validate_filter_output(output, databases)
    logger.info(
        "Database filter: %d of %d databases relevant",
        len(result.relevant_database_ids), len(databases),
    )
    return result
