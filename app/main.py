import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables for local/dev databases without migrations
    if settings.AUTO_CREATE_TABLES:
        from app.database import create_tables

        create_tables()
    logger.info("%s iniciado", settings.APP_NAME)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Error de base de datos en %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": "No se pudo completar la operación en la base de datos. Intente nuevamente."
        },
    )


@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from app.routers import contratos  # noqa: E402

app.include_router(contratos.router, prefix=f"{settings.API_PREFIX}/contratos", tags=["Contratos"])

from app.routers import periodos  # noqa: E402

app.include_router(periodos.router, prefix=f"{settings.API_PREFIX}/periodos", tags=["Periodos"])

from app.routers import pedidos  # noqa: E402

app.include_router(pedidos.router, prefix=f"{settings.API_PREFIX}/pedidos", tags=["Pedidos"])

from app.routers import inyecciones  # noqa: E402

app.include_router(inyecciones.router, prefix=f"{settings.API_PREFIX}/inyecciones", tags=["Inyecciones"])

# Dashboard + statistics
from app.routers import dashboard  # noqa: E402

app.include_router(dashboard.router, prefix=f"{settings.API_PREFIX}/dashboard", tags=["Dashboard"])

from app.routers import estadisticas  # noqa: E402

app.include_router(estadisticas.router, prefix=f"{settings.API_PREFIX}/estadisticas", tags=["Estadísticas"])

# Exportación (CSV + Excel)
from app.routers import exportacion  # noqa: E402

app.include_router(exportacion.router, prefix=f"{settings.API_PREFIX}/exportar", tags=["Exportación"])
