"""
Base processor class.

Processors attached to the ExtractionEngine are initialized once the
document is open and cleaned up when the engine closes.
"""

from abc import ABC
from typing import Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from engine.pdf_engine import ExtractionEngine

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Lifecycle shared by the engine's processors.

    `engine` may be None when a processor is driven on its own, e.g. from tests.
    """

    def __init__(self, engine: Optional['ExtractionEngine'] = None):
        self.engine = engine
        self._initialized = False

    def initialize(self) -> None:
        """Subclasses do their one-time setup, then call super().initialize()."""
        if self._initialized:
            logger.debug(f"{type(self).__name__} is already initialized")
            return
        self._initialized = True
        logger.debug(f"{type(self).__name__} ready")

    def cleanup(self) -> None:
        """Idempotent."""
        if self._initialized:
            self._initialized = False
            logger.debug(f"{type(self).__name__} released")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def __repr__(self) -> str:
        state = "initialized" if self._initialized else "idle"
        return f"{type(self).__name__}({state})"
