"""
Application-wide constants for the medical-supply contracts backend.

Defines domain enumerations, business rule thresholds, and
lookup lists used across routers, services, and models.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Period states
# ---------------------------------------------------------------------------

ESTADO_PENDIENTE: Final[str] = "PENDIENTE"
ESTADO_ACTIVO: Final[str] = "ACTIVO"
ESTADO_CERRADO: Final[str] = "CERRADO"

ESTADOS_PERIODO: Final[list[str]] = [
    ESTADO_PENDIENTE,
    ESTADO_ACTIVO,
    ESTADO_CERRADO,
]

# Allowed state changes; CERRADO is terminal
TRANSICIONES_PERIODO: Final[dict[str, frozenset[str]]] = {
    ESTADO_PENDIENTE: frozenset({ESTADO_ACTIVO, ESTADO_CERRADO}),
    ESTADO_ACTIVO: frozenset({ESTADO_CERRADO}),
    ESTADO_CERRADO: frozenset(),
}

# Free-text values written by the legacy client
ALIAS_ESTADOS_PERIODO: Final[dict[str, str]] = {
    "ACTIVO": ESTADO_ACTIVO,
    "ACTIVE": ESTADO_ACTIVO,
    "PENDIENTE": ESTADO_PENDIENTE,
    "PENDING": ESTADO_PENDIENTE,
    "CERRADO": ESTADO_CERRADO,
    "CLOSED": ESTADO_CERRADO,
}

# ---------------------------------------------------------------------------
# Currency buckets
# ---------------------------------------------------------------------------

MONEDA_USD: Final[str] = "USD"
MONEDA_CRC: Final[str] = "CRC"

MONEDAS: Final[list[str]] = [MONEDA_USD, MONEDA_CRC]

# Substrings that identify Costa Rican colones in free-text labels
MARCADORES_CRC: Final[tuple[str, ...]] = ("COLONES", "CRC")

# ---------------------------------------------------------------------------
# Contract composition
# ---------------------------------------------------------------------------

MIN_ITEMS_CONTRATO: Final[int] = 1
MAX_ITEMS_CONTRATO: Final[int] = 3

CODIGO_CONTRATO_DEFAULT: Final[str] = "N/A"
NOMBRE_CONTRATO_DEFAULT: Final[str] = "Contrato General"
NOMBRE_PERIODO_INICIAL: Final[str] = "Periodo 1"
DESCRIPCION_INYECCION_DEFAULT: Final[str] = "Inyección Presupuestaria"

# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

TOP_CONTRATOS: Final[int] = 10
TOP_MEDICAMENTOS: Final[int] = 5
MESES_TENDENCIA: Final[int] = 6

MES_LABELS: Final[list[str]] = [
    "",
    "Ene", "Feb", "Mar", "Abr", "May", "Jun",
    "Jul", "Ago", "Sep", "Oct", "Nov", "Dic",
]

# ---------------------------------------------------------------------------
# Cache scopes
# ---------------------------------------------------------------------------

SCOPE_CONTRATOS: Final[str] = "contracts"
SCOPE_DASHBOARD: Final[str] = "dashboard"
SCOPE_PERIODOS: Final[str] = "periods"
