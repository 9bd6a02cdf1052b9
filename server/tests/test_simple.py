"""Smoke tests for the application factory."""

from tramboory import __version__
from tramboory.main import create_app


def test_import_app():
    app = create_app()
    assert app.title == "Tramboory API"
    assert app.version == __version__


def test_routes_registered():
    paths = {route.path for route in create_app().routes}
    for path in ("/api/reservations", "/api/packages", "/api/inventory/products", "/api/admin/posts", "/metrics"):
        assert path in paths
