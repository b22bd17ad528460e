"""Shared engine instance for the API routers."""
from ..config.settings import configure_logging, get_settings
from ..engine import QuoteEngine

configure_logging()

# Global engine instance
engine = QuoteEngine(get_settings())
