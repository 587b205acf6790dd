"""
Backend Factory - Creates backends by name or from config
"""

from typing import Any, Dict, List, Optional, Type

from extio.base import IoFacade
from extio.utils.config import ConfigManager, get_config_manager
from extio.utils.logger import get_logger

logger = get_logger('factory')


class BackendFactory:
    """Registry of backend implementations"""

    _backends: Dict[str, Type[IoFacade]] = {}

    @classmethod
    def register(cls, name: str, backend_class: Type[IoFacade]):
        """Register a backend implementation"""
        if not (isinstance(backend_class, type) and issubclass(backend_class, IoFacade)):
            raise TypeError(f"{backend_class!r} is not an IoFacade subclass")
        cls._backends[name] = backend_class

    @classmethod
    def create(cls, backend_name: str, **options) -> IoFacade:
        """Create backend instance"""
        if backend_name not in cls._backends:
            available = ", ".join(sorted(cls._backends.keys()))
            raise ValueError(
                f"Backend '{backend_name}' not found. "
                f"Available: {available}"
            )

        backend_class = cls._backends[backend_name]
        logger.info(f"Creating backend: {backend_name} ({backend_class.__name__})")
        return backend_class(**options)

    @classmethod
    def list_backends(cls) -> List[str]:
        """List all registered backends"""
        return list(cls._backends.keys())

    @classmethod
    def create_from_config(cls, config: Optional[ConfigManager] = None) -> IoFacade:
        """
        Build the backend described by `extio.backends` in settings.yaml.

        Entries are a backend name or {type: name, options: {...}}.
        Inline options win over config/backends/<name>.yaml. Several entries
        are combined into a CompositeBackend, first entry first.

        Returns:
            IoFacade implementation
        """
        config = config or get_config_manager()
        entries = config.get('extio.backends', []) or []

        backends = []
        for entry in entries:
            name, inline_options = cls._parse_entry(entry)
            options = dict(config.load_backend_config(name))
            options.update(inline_options)
            backends.append(cls.create(name, **options))

        if not backends:
            raise ValueError("No backends configured under 'extio.backends'")

        if len(backends) == 1:
            return backends[0]

        logger.info(
            f"Combining backends: "
            f"{', '.join(b.__class__.__name__ for b in backends)}"
        )
        return cls.create("composite", backends=backends)

    @staticmethod
    def _parse_entry(entry: Any):
        if isinstance(entry, str):
            return entry, {}
        if isinstance(entry, dict) and 'type' in entry:
            options = entry.get('options') or {}
            if not isinstance(options, dict):
                raise ValueError(f"Options for backend '{entry['type']}' must be a mapping")
            return entry['type'], options
        raise ValueError(f"Invalid backend entry: {entry!r}")
