"""Periodo model — fiscal/execution window of a contract with its own budget."""

from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from app.database import Base


class Periodo(Base):
    """Execution window of a contract.

    Orders debit the period and injections credit it; the balance is always
    derived, never stored.

    Attributes:
        id: Primary key.
        contract_id: FK to Contrato.
        nombre: Display label, e.g. "Periodo 2".
        fecha_inicio: First day of the window.
        fecha_fin: Last day of the window.
        presupuesto_asignado: Budget assigned to the period.
        presupuesto_inicial: Budget at creation time (kept for history).
        estado: "PENDIENTE", "ACTIVO" or "CERRADO".
        moneda: Currency label inherited from the contract.
    """

    __tablename__ = "periods"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    nombre = Column(String(100), nullable=True)
    fecha_inicio = Column(Date, nullable=True)
    fecha_fin = Column(Date, nullable=True)
    presupuesto_asignado = Column(Numeric(15, 2), default=0, nullable=False)
    presupuesto_inicial = Column(Numeric(15, 2), default=0, nullable=True)
    estado = Column(String(50), default="PENDIENTE", nullable=True)
    moneda = Column(String(50), nullable=True)

    # Relationships
    contrato = relationship("Contrato", back_populates="periodos", lazy="select")
    pedidos = relationship(
        "Pedido",
        back_populates="periodo",
        lazy="select",
        cascade="all, delete-orphan",
    )
    inyecciones = relationship(
        "Inyeccion",
        back_populates="periodo",
        lazy="select",
        cascade="all, delete-orphan",
    )
