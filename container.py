"""
Service container holding the wired bridge services by name
"""
from typing import Any, Dict, List
from log import setup_logger

logger = setup_logger(__name__)

class ServiceContainer:
    """Name -> service registry shared by the server and its callers"""

    def __init__(self):
        self._services: Dict[str, Any] = {}

    def register(self, name: str, service: Any):
        if name in self._services:
            logger.warning(f"Replacing registered service: {name}")
        self._services[name] = service
        logger.debug(f"Registered service: {name}")

    def get(self, name: str) -> Any:
        if name not in self._services:
            raise KeyError(f"Service '{name}' is not registered")
        return self._services[name]

    def has(self, name: str) -> bool:
        return name in self._services

    def names(self) -> List[str]:
        return list(self._services)

    def clear(self):
        self._services.clear()
        logger.debug("Cleared all registered services")

# Global container instance
container = ServiceContainer()
