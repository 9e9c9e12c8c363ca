"""ContratoItem model — medication line item of a contract."""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from app.database import Base


class ContratoItem(Base):
    """Medication covered by a contract, with its own currency and price.

    Attributes:
        id: Primary key.
        contract_id: FK to Contrato.
        codigo: Medication code.
        nombre: Medication description.
        moneda: Currency label of the unit price.
        precio_unitario: Unit price.
    """

    __tablename__ = "contract_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False, index=True)
    codigo = Column(String(100), nullable=False)
    nombre = Column(String(300), nullable=False)
    moneda = Column(String(50), default="USD", nullable=True)
    precio_unitario = Column(Numeric(15, 2), default=0, nullable=False)

    # Relationships
    contrato = relationship("Contrato", back_populates="items", lazy="select")
