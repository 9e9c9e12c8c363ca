from __future__ import annotations

from fastapi.routing import APIRoute

from app.config import get_settings
from app.main import app as fastapi_app


def test_health_check_under_api_prefix(client):
    respuesta = client.get(f"{get_settings().API_PREFIX}/health")
    assert respuesta.status_code == 200
    assert respuesta.json()["status"] == "ok"


def test_every_route_is_mounted_under_api_prefix():
    prefijo = get_settings().API_PREFIX
    rutas = [r.path for r in fastapi_app.routes if isinstance(r, APIRoute)]
    assert f"{prefijo}/contratos/" in rutas
    assert f"{prefijo}/exportar/csv" in rutas
    assert all(ruta.startswith(f"{prefijo}/") for ruta in rutas)
