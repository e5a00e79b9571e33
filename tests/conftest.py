"""
Test configuration and shared fixtures for the BI report engine test suite.
Provides database setup, storage fakes, and sample construction data.
"""

import os
import tempfile

# Point both databases at throwaway files before the app reads its settings
_TEST_DB_DIR = tempfile.mkdtemp(prefix="obras_bi_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'config.db')}"
os.environ["DATA_SOURCE_URL"] = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'data.db')}"

import pytest
from datetime import date, datetime
from typing import Any, Dict, List
from unittest.mock import Mock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.app import create_app
from app.core.database import DataBase, get_data_engine
from app.datasource.models import Despesa, Funcionario, Obra, Requisicao
from app.bi.catalog import build_financial_catalog
from app.bi.schemas import FilterSet, ReportDefinition, SelectedField
from app.bi.storage import SqlAlchemyStorage


# ===== DATABASE SETUP =====

@pytest.fixture(scope="session")
def data_engine(tmp_path_factory):
    """File-backed SQLite engine for the data source database.

    A file (not :memory:) gives every concurrent fetch its own connection.
    """
    db_file = tmp_path_factory.mktemp("data") / "obras.db"
    engine = create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False})
    from app.datasource import models  # noqa: F401
    DataBase.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def data_db_session(data_engine):
    """Session on the data source database, emptied after each test"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=data_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        DataBase.metadata.drop_all(bind=data_engine)
        DataBase.metadata.create_all(bind=data_engine)


@pytest.fixture
def client(data_engine, data_db_session):
    """Create FastAPI test client with the data source overridden"""
    app = create_app()
    app.dependency_overrides[get_data_engine] = lambda: data_engine

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ===== ENGINE FIXTURES =====

@pytest.fixture
def catalog():
    return build_financial_catalog()


@pytest.fixture
def storage(data_engine):
    return SqlAlchemyStorage(data_engine)


class FakeStorage:
    """In-memory storage capability recording every call."""

    def __init__(self, tables: Dict[str, List[Dict[str, Any]]]):
        self.tables = tables
        self.query = Mock(side_effect=self._query)

    def _query(self, table, columns, predicates, limit):
        rows = [{c: row[c] for c in columns if c in row} for row in self.tables.get(table, [])]
        return rows[:limit]


@pytest.fixture
def fake_storage_factory():
    return FakeStorage


@pytest.fixture
def january_filters() -> FilterSet:
    return FilterSet(date_start=date(2024, 1, 1), date_end=date(2024, 1, 31))


@pytest.fixture
def expense_definition(january_filters) -> ReportDefinition:
    """valor (currency) and categoria (text) from despesas"""
    return ReportDefinition(
        name="Despesas de Janeiro",
        fields=[
            SelectedField(table="despesas", field="valor", alias="Valor da Despesa", value_type="currency"),
            SelectedField(table="despesas", field="categoria", alias="Categoria", value_type="text"),
        ],
        filters=january_filters,
    )


# ===== SAMPLE DATA FIXTURES =====

@pytest.fixture
def sample_obras(data_db_session) -> List[Obra]:
    obras = [
        Obra(id="obra-1", nome="Residencial Aurora", status="em_andamento", orcamento=500000.0,
             data_inicio=date(2024, 1, 10), cliente_id="cli-1"),
        Obra(id="obra-2", nome="Galpão Norte", status="planejada", orcamento=250000.0,
             data_inicio=date(2024, 3, 1), cliente_id="cli-2"),
    ]
    data_db_session.add_all(obras)
    data_db_session.commit()
    return obras


@pytest.fixture
def sample_despesas(data_db_session) -> List[Despesa]:
    despesas = [
        Despesa(id="desp-1", numero_documento="NF-001", data_despesa=date(2024, 1, 5), valor=100.0,
                categoria="Material", status="validado", cliente_id="cli-1", obra_id="obra-1"),
        Despesa(id="desp-2", numero_documento="NF-002", data_despesa=date(2024, 1, 20), valor=50.0,
                categoria="Mão de obra", status="pendente", cliente_id="cli-2", obra_id="obra-2"),
        # Outside January
        Despesa(id="desp-3", numero_documento="NF-003", data_despesa=date(2024, 2, 3), valor=999.0,
                categoria="Material", status="validado", cliente_id="cli-1", obra_id="obra-1"),
    ]
    data_db_session.add_all(despesas)
    data_db_session.commit()
    return despesas


@pytest.fixture
def sample_funcionarios(data_db_session) -> List[Funcionario]:
    funcionarios = [
        Funcionario(id="func-1", nome="Ana Souza", email="ana@obras.com", ativo=True,
                    created_at=datetime(2024, 1, 2, 9, 0)),
        Funcionario(id="func-2", nome="Bruno Lima", email="bruno@obras.com", ativo=False,
                    created_at=datetime(2024, 1, 31, 17, 45)),
        Funcionario(id="func-3", nome="Carla Dias", email="carla@obras.com", ativo=True,
                    created_at=datetime(2023, 12, 15, 8, 0)),
    ]
    data_db_session.add_all(funcionarios)
    data_db_session.commit()
    return funcionarios


@pytest.fixture
def sample_requisicoes(data_db_session) -> List[Requisicao]:
    requisicoes = [
        Requisicao(id="req-1", titulo="Cimento", status="aberta", prioridade="alta",
                   data_vencimento=date(2024, 1, 15), obra_id="obra-1"),
        Requisicao(id="req-2", titulo="Areia", status="aberta", prioridade="media",
                   data_vencimento=date(2024, 1, 25), obra_id="obra-2"),
    ]
    data_db_session.add_all(requisicoes)
    data_db_session.commit()
    return requisicoes
