"""Pedido model — purchase order drawn against a contract period."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Pedido(Base):
    """Purchase order that debits a period's balance.

    Attributes:
        id: Primary key.
        period_id: FK to Periodo; never changes after creation.
        fecha_pedido: Order date.
        numero_pedido_sap: SAP order number.
        numero_pedido_sicop: SICOP order number.
        pur: PUR reference.
        numero_reserva: Budget reservation number.
        cantidad_medicamento: Ordered quantity.
        monto: Order amount in the contract currency.
        descripcion: Free-text description.
        item_id: Optional FK to ContratoItem.
        medicamento_nombre: Item name copied at order time.
        medicamento_codigo: Item code copied at order time.
        created_at: Record creation timestamp.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    period_id = Column(Integer, ForeignKey("periods.id"), nullable=False, index=True)
    fecha_pedido = Column(Date, nullable=True)
    numero_pedido_sap = Column(String(50), nullable=True)
    numero_pedido_sicop = Column(String(50), nullable=True)
    pur = Column(String(50), nullable=True)
    numero_reserva = Column(String(50), nullable=True)
    cantidad_medicamento = Column(Integer, default=0, nullable=False)
    monto = Column(Numeric(15, 2), default=0, nullable=False)
    descripcion = Column(String(500), nullable=True)
    item_id = Column(Integer, ForeignKey("contract_items.id", ondelete="SET NULL"), nullable=True)
    medicamento_nombre = Column(String(300), nullable=True)
    medicamento_codigo = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    periodo = relationship("Periodo", back_populates="pedidos", lazy="select")
