"""Executes one query plan against the storage capability."""

import logging
from typing import Any, Dict, List

from fastapi.concurrency import run_in_threadpool
from app.bi.exceptions import ReportFetchError, UnknownTableError
from app.bi.schemas import QueryPlan, RawRow
from app.bi.storage import StorageBackend

logger = logging.getLogger(__name__)


class TableFetcher:
    """Async wrapper around a blocking storage backend."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    async def fetch(self, plan: QueryPlan) -> List[Dict[str, Any]]:
        """Fetch the rows of one plan, capped at ``plan.limit``.

        Storage failures surface as ``ReportFetchError`` for this table only.
        Rows beyond the cap are dropped silently.
        """
        try:
            rows = await run_in_threadpool(
                self.storage.query, plan.table, plan.columns, plan.predicates, plan.limit
            )
            validated = [RawRow.model_validate(row).model_dump() for row in (rows or [])]
        except UnknownTableError:
            raise
        except Exception as e:
            logger.error("Fetch failed for table %s: %s", plan.table, e)
            raise ReportFetchError(plan.table, e) from e

        if len(validated) > plan.limit:
            logger.warning(
                "Table %s returned %d rows, truncating to %d", plan.table, len(validated), plan.limit
            )
            validated = validated[: plan.limit]

        logger.debug("Fetched %d rows from %s", len(validated), plan.table)
        return validated
