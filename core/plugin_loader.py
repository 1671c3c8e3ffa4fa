"""
Plugin loader for automatic discovery and registration of source adapter classes.
"""

import importlib
import inspect
import logging
import pathlib
from typing import Dict, Type

from .interfaces import SourceAdapter

logger = logging.getLogger(__name__)

# Plugin directory relative to this file
PLUGIN_DIR = pathlib.Path(__file__).parent.parent / "adapters"
PLUGIN_PACKAGE = "adapters"

# Global registry of discovered adapter classes
_REGISTRY: Dict[str, Type[SourceAdapter]] = {}


def refresh_registry() -> None:
    """Import every module under adapters/ and register SourceAdapter subclasses."""
    _REGISTRY.clear()

    if not PLUGIN_DIR.exists():
        logger.warning(f"Plugin directory does not exist: {PLUGIN_DIR}")
        return

    module_count = 0
    for py_file in sorted(PLUGIN_DIR.rglob("*.py")):
        # Skip __init__.py and private modules
        if py_file.name.startswith("_"):
            continue

        plugin_name = py_file.parent.name
        module_name = f"{PLUGIN_PACKAGE}.{plugin_name}.{py_file.stem}"
        try:
            mod = importlib.import_module(module_name)
        except Exception as e:
            logger.error(f"Failed to load module {module_name}: {e}")
            continue
        module_count += 1

        for name, obj in inspect.getmembers(mod, inspect.isclass):
            if (issubclass(obj, SourceAdapter)
                    and not inspect.isabstract(obj)
                    and obj.__module__ == mod.__name__):
                key = f"{plugin_name}.{obj.__name__}"
                _REGISTRY[key] = obj
                logger.debug(f"Registered adapter: {key}")

    logger.info(f"Plugin discovery complete: {module_count} modules, {len(_REGISTRY)} adapters")


def get(class_path: str) -> Type[SourceAdapter]:
    """Get an adapter class by its plugin path.

    Args:
        class_path: Format 'plugin_name.ClassName' (e.g., 'feeds.FeedAdapter')

    Returns:
        The adapter class

    Raises:
        KeyError: If the class is not found
    """
    if not _REGISTRY:
        refresh_registry()

    if class_path not in _REGISTRY:
        available = sorted(_REGISTRY)
        raise KeyError(f"Adapter '{class_path}' not found. Available: {available}")

    return _REGISTRY[class_path]


def list_available() -> Dict[str, Type[SourceAdapter]]:
    """Get a copy of all registered adapters."""
    if not _REGISTRY:
        refresh_registry()
    return _REGISTRY.copy()
