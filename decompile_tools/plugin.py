import inspect
import logging
from typing import Dict, List, Optional, Type

from decompile_tools.interfaces import BackendInterface

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Registry for decompiler backends.

    Backends are stored by tool id. The dispatcher only ever refers to these
    ids; the orchestrator asks the registry for an instance.
    """

    def __init__(self):
        self.backends: Dict[str, Type[BackendInterface]] = {}

    def register_backend(
        self, backend_class: Type[BackendInterface]
    ) -> Optional[Type[BackendInterface]]:
        """Register a backend class.

        Args:
            backend_class: A class that implements BackendInterface

        Returns:
            The registered backend class or None if it wasn't registered

        Raises:
            TypeError: If the provided class doesn't implement BackendInterface
        """
        if not inspect.isclass(backend_class):
            raise TypeError(f"Expected a class, got {type(backend_class)}")

        if not issubclass(backend_class, BackendInterface):
            raise TypeError(
                f"Class {backend_class.__name__} does not implement BackendInterface"
            )

        # Skip abstract classes
        if inspect.isabstract(backend_class):
            logger.debug(
                f"Skipping registration of abstract class {backend_class.__name__}"
            )
            return None

        tool_id = backend_class.tool_id
        if not tool_id:
            raise TypeError(f"Backend {backend_class.__name__} has no tool_id")

        existing = self.backends.get(tool_id)
        if existing is not None and existing is not backend_class:
            logger.warning(
                f"Replacing backend {existing.__name__} for '{tool_id}' with {backend_class.__name__}"
            )

        logger.debug(f"Registering backend: {tool_id} ({backend_class.__name__})")
        self.backends[tool_id] = backend_class
        return backend_class

    def get_backend_class(self, tool_id: str) -> Type[BackendInterface]:
        try:
            return self.backends[tool_id]
        except KeyError:
            raise KeyError(f"No backend registered for '{tool_id}'") from None

    def create_backend(self, tool_id: str, settings=None) -> BackendInterface:
        return self.get_backend_class(tool_id)(settings)

    def get_tool_ids(self) -> List[str]:
        return sorted(self.backends)


registry = BackendRegistry()


def register_backend(cls=None):
    """Decorator to register a backend class with the backend registry.

    Example:
        @register_backend
        class JadxBackend(BackendInterface):
            tool_id = "jadx"
            ...
    """

    def _register(cls):
        result = registry.register_backend(cls)
        return cls if result is None else result

    if cls is None:
        return _register
    return _register(cls)

