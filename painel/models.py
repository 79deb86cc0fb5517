# painel/models.py
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, JSON, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base

class Grupo(Base):
    __tablename__ = "grupos"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(120), nullable=False)

    produtos = relationship("Produto", back_populates="grupo", passive_deletes=True)

class Produto(Base):
    __tablename__ = "produtos"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    descricao = Column(Text, default="")
    preco = Column(Numeric(10, 2), nullable=False, default=0)
    imagem_url = Column(String(500), default="")
    disponivel = Column(Boolean, default=True, nullable=False)
    # nulo = produto desvinculado
    grupo_id = Column(Integer, ForeignKey("grupos.id", ondelete="SET NULL"), nullable=True, index=True)
    criado_em = Column(DateTime, default=datetime.utcnow, nullable=False)

    grupo = relationship("Grupo", back_populates="produtos")

class Pedido(Base):
    __tablename__ = "pedidos"

    id = Column(Integer, primary_key=True, index=True)
    cliente_nome = Column(String(120), nullable=True)
    endereco_entrega = Column(String(255), nullable=True)
    forma_pagamento = Column(String(30), nullable=False, default="Dinheiro")
    observacoes = Column(Text, nullable=True)
    status = Column(String(30), default="Novo", nullable=False)   # Novo, Em preparo, Em entrega, Finalizado
    total = Column(Numeric(10, 2), default=0, nullable=False)
    # cópia dos itens no momento do pedido
    itens_pedido_json = Column(JSON, nullable=True)
    criado_em = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

class Promocao(Base):
    __tablename__ = "promocoes"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String(255), nullable=False)
    descricao = Column(Text, default="")
    validade = Column(String(120), default="")
    valor_total = Column(Numeric(10, 2), nullable=True)
    criado_em = Column(DateTime, default=datetime.utcnow, nullable=False)

    itens = relationship(
        "PromocaoItem",
        back_populates="promocao",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PromocaoItem.id",
    )

class PromocaoItem(Base):
    __tablename__ = "promocao_itens"

    id = Column(Integer, primary_key=True, index=True)
    promocao_id = Column(Integer, ForeignKey("promocoes.id", ondelete="CASCADE"), nullable=False, index=True)
    produto_nome = Column(String(255), nullable=False)
    preco_ajustado = Column(Numeric(10, 2), nullable=True)
    quantidade = Column(Integer, nullable=False, default=1)

    promocao = relationship("Promocao", back_populates="itens")

class ConfiguracaoLoja(Base):
    __tablename__ = "configuracoes_loja"

    # linha única (id = 1)
    id = Column(Integer, primary_key=True)
    nome_loja = Column(String(120), default="")
    logo_url = Column(String(500), default="")
    horario_abertura = Column(String(5), default="18:00")
    horario_fechamento = Column(String(5), default="23:00")
    integracao_whatsapp = Column(Boolean, default=False, nullable=False)
    integracao_gateway_pagamento = Column(Boolean, default=False, nullable=False)
    ultima_atualizacao = Column(DateTime, nullable=True)
