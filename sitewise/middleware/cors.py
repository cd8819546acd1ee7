"""CORS middleware configuration"""
from fastapi.middleware.cors import CORSMiddleware
from sitewise.config import get_settings


def setup_cors(app):
    """
    Configure CORS middleware for the application

    Widget endpoints are fetched from arbitrary host pages, so origins come
    from configuration and default to all.
    """
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
