"""API package: provides FastAPI dependencies and route definitions for the application."""

from .dependencies import close_store, get_session, get_store  # noqa: F401
from .routes import router  # noqa: F401
