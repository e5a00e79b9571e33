"""
Unit tests for table fetching, multi-table merge and row projection.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from app.bi.exceptions import ReportFetchError, UnknownTableError
from app.bi.fetcher import TableFetcher
from app.bi.merge import DISPLAY_ORIGIN_KEY, MultiTableMerge, RowProjector
from app.bi.schemas import QueryPlan, SelectedField


def _plan(table, columns, limit=50):
    return QueryPlan(table=table, columns=columns, predicates=[], limit=limit)


class TestTableFetcher:
    """Test the async fetch of one plan"""

    async def test_fetch_returns_rows(self, fake_storage_factory):
        storage = fake_storage_factory({"despesas": [{"id": "d1", "valor": 10.0}]})
        rows = await TableFetcher(storage).fetch(_plan("despesas", ["id", "valor"]))

        assert rows == [{"id": "d1", "valor": 10.0}]
        storage.query.assert_called_once()

    async def test_fetch_truncates_to_limit(self):
        storage = Mock()
        storage.query = Mock(return_value=[{"id": i} for i in range(10)])

        rows = await TableFetcher(storage).fetch(_plan("despesas", ["id"], limit=3))
        assert [r["id"] for r in rows] == [0, 1, 2]

    async def test_storage_failure_becomes_fetch_error(self):
        storage = Mock()
        storage.query = Mock(side_effect=RuntimeError("connection reset"))

        with pytest.raises(ReportFetchError) as exc_info:
            await TableFetcher(storage).fetch(_plan("obras", ["id"]))

        assert exc_info.value.table == "obras"
        assert "connection reset" in str(exc_info.value)

    async def test_unknown_table_propagates_unchanged(self):
        storage = Mock()
        storage.query = Mock(side_effect=UnknownTableError("xyz"))

        with pytest.raises(UnknownTableError):
            await TableFetcher(storage).fetch(_plan("xyz", ["id"]))


class TestMultiTableMerge:
    """Test the union of per-table row sets"""

    async def test_union_keeps_every_row_in_table_order(self, fake_storage_factory):
        storage = fake_storage_factory({
            "despesas": [{"id": "d1", "valor": 100.0}],
            "funcionarios": [{"id": "f1", "nome": "Ana"}, {"id": "f2", "nome": "Bruno"}],
        })
        merge = MultiTableMerge(TableFetcher(storage))

        merged = await merge.fetch_all([_plan("despesas", ["id", "valor"]), _plan("funcionarios", ["id", "nome"])])

        assert len(merged) == 3
        assert [table for table, _ in merged] == ["despesas", "funcionarios", "funcionarios"]
        assert storage.query.call_count == 2

    async def test_single_table(self, fake_storage_factory):
        storage = fake_storage_factory({"obras": [{"id": "o1", "nome": "Aurora"}]})
        merged = await MultiTableMerge(TableFetcher(storage)).fetch_all([_plan("obras", ["id", "nome"])])
        assert merged == [("obras", {"id": "o1", "nome": "Aurora"})]

    async def test_no_plans(self):
        fetcher = Mock()
        fetcher.fetch = AsyncMock()
        assert await MultiTableMerge(fetcher).fetch_all([]) == []
        fetcher.fetch.assert_not_called()

    async def test_any_failure_fails_the_merge(self):
        fetcher = Mock()
        fetcher.fetch = AsyncMock(side_effect=[[{"id": "d1"}], ReportFetchError("funcionarios")])

        with pytest.raises(ReportFetchError):
            await MultiTableMerge(fetcher).fetch_all([_plan("despesas", ["id"]), _plan("funcionarios", ["id"])])


class TestRowProjector:
    """Test projection of raw rows into display rows"""

    def test_project_tags_origin_and_keeps_selected_fields(self):
        projector = RowProjector([SelectedField(table="despesas", field="valor")])
        row = projector.project("despesas", {"id": "d1", "valor": 10.0, "extra": "x"}, 0)
        assert row == {"id": "d1", DISPLAY_ORIGIN_KEY: "despesas", "valor": 10.0}

    def test_missing_id_gets_positional_fallback(self):
        projector = RowProjector([SelectedField(table="obras", field="nome")])
        rows = projector.project_all([
            ("obras", {"id": None, "nome": "A"}),
            ("obras", {"nome": "B"}),
        ])
        assert [r["id"] for r in rows] == ["obras-0", "obras-1"]

    def test_fields_of_other_tables_are_absent(self):
        projector = RowProjector([
            SelectedField(table="despesas", field="valor"),
            SelectedField(table="funcionarios", field="nome"),
        ])
        rows = projector.project_all([
            ("despesas", {"id": "d1", "valor": 100.0}),
            ("funcionarios", {"id": "f1", "nome": "Ana"}),
        ])
        assert "nome" not in rows[0]
        assert "valor" not in rows[1]

    def test_same_key_on_two_tables_shares_a_column(self):
        projector = RowProjector([
            SelectedField(table="despesas", field="status"),
            SelectedField(table="obras", field="status"),
        ])
        rows = projector.project_all([
            ("despesas", {"id": "d1", "status": "validado"}),
            ("obras", {"id": "o1", "status": "em_andamento"}),
        ])
        assert [r["status"] for r in rows] == ["validado", "em_andamento"]
