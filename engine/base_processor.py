"""
Processor lifecycle shared by the engine's processors.

A processor is bound to one open PDFEngine. The engine creates it, calls
initialize() once both documents are open and cleanup() when the context
manager exits; operations in between call require_ready() first.
"""

from abc import ABC
from typing import Dict, List, Optional, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from engine.pdf_engine import PDFEngine

logger = logging.getLogger(__name__)


class BaseProcessor(ABC):
    """
    Base class for text extraction, in-place redaction and reflow processors.

    Subclasses acquire per-document state (parsed pages, resolved fonts) in
    initialize() and drop it in cleanup().
    """

    def __init__(self, engine: 'PDFEngine'):
        self.engine = engine
        self._initialized = False

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def initialize(self) -> None:
        """
        Acquire per-document state.

        Overrides do their own setup and then call super().initialize().
        """
        if self._initialized:
            logger.warning(f"{self.name} already initialized for {self.engine.name}")
            return

        self._initialized = True
        logger.debug(f"{self.name} ready for {self.engine.name}")

    def cleanup(self) -> None:
        """Drop per-document state. Safe to call more than once."""
        if not self._initialized:
            return

        self._initialized = False
        logger.debug(f"{self.name} released")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def validate_state(self) -> bool:
        """
        Check that the processor is initialized and its engine still open.

        Returns:
            True if operations may run, False otherwise
        """
        if not self._initialized:
            logger.error(f"{self.name} not initialized")
            return False

        if self.engine is None or not self.engine.is_open:
            logger.error(f"{self.name} has no open engine")
            return False

        return True

    def require_ready(self) -> None:
        """
        Raises:
            RuntimeError: If validate_state() fails
        """
        if not self.validate_state():
            raise RuntimeError(f"{self.name} used outside an open engine")

    def __repr__(self) -> str:
        status = "initialized" if self._initialized else "not initialized"
        return f"{self.name}({status})"


class ProcessorRegistry:
    """
    Named processors of one engine.

    Processors are initialized in registration order and cleaned up in
    reverse, so a processor can rely on the ones registered before it.
    """

    def __init__(self):
        self._processors: Dict[str, BaseProcessor] = {}

    def register(self, name: str, processor: BaseProcessor) -> None:
        """
        Register a processor under a unique name ("text", "redactor", "reflow").

        Raises:
            ValueError: If the name is already taken
        """
        if name in self._processors:
            raise ValueError(f"Processor '{name}' already registered")

        self._processors[name] = processor
        logger.debug(f"Registered processor: {name}")

    def get(self, name: str) -> Optional[BaseProcessor]:
        return self._processors.get(name)

    def initialize_all(self) -> None:
        for name, processor in self._processors.items():
            try:
                processor.initialize()
            except Exception as e:
                logger.error(f"Failed to initialize processor '{name}': {e}")
                raise

    def cleanup_all(self) -> None:
        """Clean up in reverse registration order; a failing cleanup does not stop the rest."""
        for name in reversed(list(self._processors)):
            try:
                self._processors[name].cleanup()
            except Exception as e:
                logger.warning(f"Error cleaning up processor '{name}': {e}")

    def clear(self) -> None:
        self._processors.clear()

    @property
    def processor_names(self) -> List[str]:
        return list(self._processors)

    def __len__(self) -> int:
        return len(self._processors)

    def __repr__(self) -> str:
        return f"ProcessorRegistry({self.processor_names})"
