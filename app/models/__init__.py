"""SQLAlchemy models package for the contracts backend.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from app.models import Contrato, Periodo
"""

# Contract header and its line items
from app.models.contrato import Contrato  # noqa: F401
from app.models.contrato_item import ContratoItem  # noqa: F401

# Budget windows
from app.models.periodo import Periodo  # noqa: F401

# Debits and credits against a period
from app.models.pedido import Pedido  # noqa: F401
from app.models.inyeccion import Inyeccion  # noqa: F401

__all__ = [
    "Contrato",
    "ContratoItem",
    "Periodo",
    "Pedido",
    "Inyeccion",
]
