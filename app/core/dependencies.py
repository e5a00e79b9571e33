# app/core/dependencies.py
"""Dependencies shared by the API routers."""

from typing import Annotated
from fastapi import Depends
from sqlalchemy.engine import Engine

from app.config import BI_DEFAULT_DATE_END, BI_DEFAULT_DATE_START, BI_ROW_LIMIT
from app.core.database import get_data_engine
from app.bi.catalog import FieldCatalog, get_catalog
from app.bi.schemas import FilterSet
from app.bi.storage import SqlAlchemyStorage

# Data source and catalog dependencies
DataEngineDep = Annotated[Engine, Depends(get_data_engine)]
CatalogDep = Annotated[FieldCatalog, Depends(get_catalog)]


def get_storage(engine: DataEngineDep) -> SqlAlchemyStorage:
    """Storage backend over the data source database"""
    return SqlAlchemyStorage(engine)


def get_report_service(catalog: CatalogDep, storage: SqlAlchemyStorage = Depends(get_storage)):
    """Report service wired with the catalog and storage backend"""
    from app.bi.service import ReportService

    return ReportService(
        catalog,
        storage,
        row_limit=BI_ROW_LIMIT,
        default_filters=FilterSet(date_start=BI_DEFAULT_DATE_START, date_end=BI_DEFAULT_DATE_END),
    )
