"""Tests for database filter planning."""

from __future__ import annotations

import pytest

from assistant.core.config import AiTask
from assistant.pipeline.database_filter import (
    describe_databases,
    plan_database_filters,
    unfiltered,
    validate_filter_output,
)
from assistant.schemas.llm import (
    CandidateDatabase,
    DatabaseField,
    DatabaseFilterOutput,
    DatabaseFilterResult,
)
from tests.conftest import make_settings


@pytest.fixture()
def databases() -> list[CandidateDatabase]:
    return [
        CandidateDatabase(
            id="db-orders",
            name="Orders",
            fields={
                "f-status": DatabaseField(name="Status", type="select"),
                "f-total": DatabaseField(name="Total", type="number"),
            },
            sample_records=[
                {"f-status": "refunded", "f-total": 120},
                {"f-status": "paid", "f-total": 40},
                {"f-status": "paid", "f-total": 15},
            ],
        ),
        CandidateDatabase(
            id="db-people",
            name="People",
            fields={"f-name": DatabaseField(name="Name", type="text")},
            sample_records=[{"f-name": "Ada"}],
        ),
    ]


class TestDescribeDatabases:
    def test_lists_fields_and_samples(self, databases):
        text = describe_databases(databases, sample_limit=5)
        assert "Database: Orders (ID: db-orders)" in text
        assert "- Status (ID: f-status, Type: select)" in text
        assert "1. Status: refunded, Total: 120" in text

    def test_sample_records_are_bounded(self, databases):
        text = describe_databases(databases, sample_limit=1)
        assert "Status: refunded" in text
        assert "2. Status: paid" not in text


class TestValidateFilterOutput:
    def test_drops_unknown_databases_and_fields(self, databases):
        output = DatabaseFilterOutput.model_validate({
            "should_filter": True,
            "databases": [
                {"database_id": "db-orders", "filters": [
                    {"field_id": "f-status", "operator": "eq", "value": "refunded"},
                    {"field_id": "f-missing", "value": "x"},
                ]},
                {"database_id": "db-ghost", "filters": []},
            ],
        })

        result = validate_filter_output(output, databases)

        assert result.relevant_database_ids == {"db-orders"}
        assert [f.field_id for f in result.field_filters["db-orders"]] == ["f-status"]
        assert "db-ghost" not in result.field_filters

    def test_should_filter_false_means_nothing_relevant(self, databases):
        output = DatabaseFilterOutput(should_filter=False)
        assert validate_filter_output(output, databases) == DatabaseFilterResult()

    def test_unfiltered_selects_every_database(self, databases):
        result = unfiltered(databases)
        assert result.relevant_database_ids == {"db-orders", "db-people"}
        assert result.field_filters == {"db-orders": [], "db-people": []}


class TestPlanDatabaseFilters:
    async def test_no_databases_makes_no_call(self, fake_llm, settings):
        result = await plan_database_filters("refunds", [], settings=settings)
        assert result == DatabaseFilterResult()
        assert fake_llm.calls == []

    async def test_plans_filters(self, fake_llm, databases):
        settings = make_settings(database_sample_records=2)
        fake_llm.queue(AiTask.DATABASE_FILTER, {
            "databases": [{"database_id": "db-orders", "filters": [
                {"field_id": "f-status", "value": "refunded"},
            ]}],
        })

        result = await plan_database_filters("refunded orders", databases, settings=settings)

        assert result.relevant_database_ids == {"db-orders"}
        assert result.field_filters["db-orders"][0].value == "refunded"
        prompt = fake_llm.calls[0]["user"]
        assert "refunded orders" in prompt
        assert "3. Status" not in prompt
