"""Configuration classes, selected by name or by ``FLASK_ENV``."""
import os
from typing import Type

from .development import DevelopmentConfig
from .production import ProductionConfig
from .testing import TestingConfig

CONFIGS = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}

def get_config(config_name: str = None) -> Type:
    """Config class for ``config_name``; unknown or missing names get development."""
    name = (config_name or os.getenv('FLASK_ENV') or 'development').strip().lower()
    return CONFIGS.get(name, DevelopmentConfig)
