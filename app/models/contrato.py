"""Contrato model — procurement contract header for medical supplies."""

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Contrato(Base):
    """Procurement contract with up to three medication line items.

    The header ``codigo``, ``nombre`` and ``moneda`` are copied from the first
    line item when the contract is created.

    Attributes:
        id: Primary key.
        codigo: Code of the primary medication.
        nombre: Name of the primary medication (or a generic label).
        concurso: Tender reference.
        contrato_legal: Legal contract reference number.
        proveedor: Supplier name.
        precio_unitario: Unit price of the primary item (legacy header field).
        fecha_inicio: Contract start date.
        moneda: Contract currency label.
        created_at: Record creation timestamp.
    """

    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    codigo = Column(String(100), nullable=True)
    nombre = Column(String(300), nullable=True)
    concurso = Column(String(200), nullable=True)
    contrato_legal = Column(String(200), nullable=True)
    proveedor = Column(String(300), nullable=True)
    precio_unitario = Column(Numeric(15, 2), default=0, nullable=True)
    fecha_inicio = Column(Date, nullable=True)
    moneda = Column(String(50), default="USD", nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    items = relationship(
        "ContratoItem",
        back_populates="contrato",
        order_by="ContratoItem.id",
        lazy="select",
        cascade="all, delete-orphan",
    )
    periodos = relationship(
        "Periodo",
        back_populates="contrato",
        order_by="Periodo.fecha_inicio",
        lazy="select",
        cascade="all, delete-orphan",
    )
