"""Inyeccion model — budget addition credited to a contract period."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Inyeccion(Base):
    """Manually recorded budget injection backed by an official letter.

    Attributes:
        id: Primary key.
        period_id: FK to Periodo; never changes after creation.
        monto: Injected amount.
        moneda: Currency chosen on the form.
        fecha: Date of the injection.
        oficio: Official letter number authorising the injection.
        descripcion: Justification text.
        documento_nombre: File name of the supporting PDF.
        documento: Supporting PDF as a ``data:`` URL (opaque string).
        created_at: Record creation timestamp.
    """

    __tablename__ = "injections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    period_id = Column(Integer, ForeignKey("periods.id"), nullable=False, index=True)
    monto = Column(Numeric(15, 2), nullable=False)
    moneda = Column(String(50), nullable=True)
    fecha = Column(Date, nullable=True)
    oficio = Column(String(100), nullable=True)
    descripcion = Column(String(1000), nullable=True)
    documento_nombre = Column(String(300), nullable=True)
    documento = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    periodo = relationship("Periodo", back_populates="inyecciones", lazy="select")
