from card_lookup.core.config import get_config
from card_lookup.core.logging import setup_logging

__all__ = ["get_config", "setup_logging"]
