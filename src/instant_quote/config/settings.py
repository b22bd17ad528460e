"""
Centralized settings and path configuration for the instant quote tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


PRICING_POLICIES = ('tiered_vat', 'flat_markup')


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Input files
    materials_seed: Path

    # Output files
    materials_catalog: Path
    build_report: Path

    # Pricing
    pricing_policy: str = 'tiered_vat'
    markup_percentage: float = 0.20
    tax_rate: float = 0.20
    minimum_quote_price: float = 25.00
    currency_symbol: str = '£'

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()
        data_dir = Path(__file__).resolve().parent.parent / 'data'

        catalog_env = os.getenv('INSTANT_QUOTE_MATERIALS_CSV')
        materials_catalog = Path(catalog_env) if catalog_env else root / 'materials_catalog.csv'

        policy = os.getenv('INSTANT_QUOTE_PRICING_POLICY', 'tiered_vat').strip().lower()
        if policy not in PRICING_POLICIES:
            raise ValueError(
                f"INSTANT_QUOTE_PRICING_POLICY must be one of {PRICING_POLICIES}, got '{policy}'"
            )

        return cls(
            project_root=root,
            materials_seed=data_dir / 'materials_seed.csv',
            materials_catalog=materials_catalog,
            build_report=root / 'outputs' / 'build_report.json',
            pricing_policy=policy,
            markup_percentage=_env_float('INSTANT_QUOTE_MARKUP', 0.20),
            tax_rate=_env_float('INSTANT_QUOTE_TAX_RATE', 0.20),
            minimum_quote_price=_env_float('INSTANT_QUOTE_MINIMUM_PRICE', 25.00),
            log_level=os.getenv('INSTANT_QUOTE_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(level: Optional[str] = None):
    """Attach a stream handler to the package logger."""
    level = level or get_settings().log_level
    logger = logging.getLogger('instant_quote')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s [%(name)s] %(message)s'
        ))
        logger.addHandler(handler)
    logger.setLevel(level)
