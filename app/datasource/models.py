"""Database models for the operational construction tables (data source database).

These tables are owned by the CRUD screens of the application; the BI engine
only reads them. Every table exposes a string ``id`` and a ``created_at``
timestamp, which is the fallback date column for report filters.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Float, Integer, Boolean, Date, DateTime, Text
from app.core.database import DataBase as Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Despesa(Base):
    """Expense linked to a purchase requisition."""

    __tablename__ = "despesas"

    id = Column(String(36), primary_key=True, default=_new_id)
    numero_documento = Column(String(50), nullable=True)
    data_despesa = Column(Date, nullable=True, index=True)
    valor = Column(Float, nullable=True)
    categoria = Column(String(100), nullable=True)
    status = Column(String(30), nullable=True)
    fornecedor_cnpj = Column(String(18), nullable=True)
    descricao = Column(Text, nullable=True)
    cliente_id = Column(String(36), nullable=True, index=True)
    obra_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.now)


class DespesaVariavel(Base):
    """Variable expense, usually captured through OCR of a receipt."""

    __tablename__ = "despesas_variaveis"

    id = Column(String(36), primary_key=True, default=_new_id)
    nr_documento = Column(String(50), nullable=True)
    data_compra = Column(Date, nullable=True, index=True)
    data_lancamento = Column(Date, nullable=True)
    valor_compra = Column(Float, nullable=True)
    nome_fornecedor = Column(String(255), nullable=True)
    cnpj_fornecedor = Column(String(18), nullable=True)
    forma_pagamento = Column(String(50), nullable=True)
    numero_parcelas = Column(Integer, nullable=True)
    status_ocr = Column(String(30), nullable=True)
    descricao = Column(Text, nullable=True)
    obra_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.now)


class CartaoCredito(Base):
    __tablename__ = "cartoes_credito"

    id = Column(String(36), primary_key=True, default=_new_id)
    numero_cartao_masked = Column(String(25), nullable=True)
    bandeira = Column(String(30), nullable=True)
    vencimento_mes = Column(Integer, nullable=True)
    vencimento_ano = Column(Integer, nullable=True)
    ativo = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class FormaPagamento(Base):
    __tablename__ = "formas_pagamento"

    id = Column(String(36), primary_key=True, default=_new_id)
    codigo = Column(String(20), nullable=True)
    nome = Column(String(100), nullable=True)
    ativo = Column(Boolean, default=True)
    permite_parcelamento = Column(Boolean, default=False)
    requer_cartao = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.now)


class Categoria(Base):
    __tablename__ = "categorias"

    id = Column(String(36), primary_key=True, default=_new_id)
    nome = Column(String(100), nullable=True)
    tipo = Column(String(50), nullable=True)
    descricao = Column(Text, nullable=True)
    ativa = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class Cliente(Base):
    __tablename__ = "clientes"

    id = Column(String(36), primary_key=True, default=_new_id)
    documento = Column(String(18), nullable=True)
    nome = Column(String(255), nullable=True)
    tipo = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=datetime.now)


class Obra(Base):
    """Construction project."""

    __tablename__ = "obras"

    id = Column(String(36), primary_key=True, default=_new_id)
    nome = Column(String(255), nullable=True)
    status = Column(String(30), nullable=True)
    progresso = Column(Float, nullable=True)
    orcamento = Column(Float, nullable=True)
    data_inicio = Column(Date, nullable=True, index=True)
    data_fim = Column(Date, nullable=True)
    cliente_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.now)


class Funcionario(Base):
    __tablename__ = "funcionarios"

    id = Column(String(36), primary_key=True, default=_new_id)
    nome = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    telefone = Column(String(30), nullable=True)
    ativo = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)


class Requisicao(Base):
    """Purchase requisition."""

    __tablename__ = "requisicoes"

    id = Column(String(36), primary_key=True, default=_new_id)
    titulo = Column(String(255), nullable=True)
    status = Column(String(30), nullable=True)
    prioridade = Column(String(20), nullable=True)
    data_vencimento = Column(Date, nullable=True, index=True)
    obra_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.now)
