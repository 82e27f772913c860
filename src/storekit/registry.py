"""Storage driver registry.

Maps driver names to constructors and resolves a config value to a concrete
Store through the name the config reports. Registries are plain objects so
tests can build isolated ones; default_registry() is the process-wide
instance, bootstrapped with the bundled drivers.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from storekit.config import NamedConfig, config_from_env
from storekit.errors import UnknownDriverError
from storekit.observability.tracing import configure_tracing
from storekit.store import Store

logger = logging.getLogger(__name__)

DriverConstructor = Callable[[Any], Store]
"""Builds a Store from an opaque config value, raising storekit errors on failure."""

BUNDLED_DRIVER_MODULES = (
    "storekit.drivers.filesystem",
    "storekit.drivers.minio",
    "storekit.drivers.s3",
)


@dataclass
class DriverRegistry:
    """Registry of storage driver constructors.

    Registration under an existing name replaces the previous constructor.
    Lookup of an unknown name raises UnknownDriverError.
    """

    _drivers: dict[str, DriverConstructor] = field(default_factory=dict)

    def register(self, name: str, constructor: DriverConstructor) -> None:
        """Register (or replace) the constructor for a driver name.

        Args:
            name: Driver name reported by matching configs.
            constructor: Callable building a Store from a config.
        """
        if name in self._drivers:
            logger.debug("Replacing storage driver registration: %s", name)
        self._drivers[name] = constructor
        logger.debug("Registered storage driver: %s", name)

    def get(self, name: str) -> DriverConstructor:
        """Look up a driver constructor by name.

        Raises:
            UnknownDriverError: If no driver is registered under name.
        """
        constructor = self._drivers.get(name)
        if constructor is None:
            raise UnknownDriverError(name)
        return constructor

    def new(self, config: NamedConfig) -> Store:
        """Construct a Store for config via its driver name.

        The constructor is invoked exactly once and its result (or error) is
        returned unchanged. The registry does not inspect the config beyond
        driver_name().

        Raises:
            UnknownDriverError: If config names an unregistered driver.
        """
        constructor = self.get(config.driver_name())
        return constructor(config)

    def __contains__(self, name: object) -> bool:
        return name in self._drivers

    @property
    def driver_names(self) -> frozenset[str]:
        """Return the set of registered driver names."""
        return frozenset(self._drivers.keys())


def bootstrap(registry: DriverRegistry, modules: tuple[str, ...] = BUNDLED_DRIVER_MODULES) -> DriverRegistry:
    """Let each driver module register itself into registry.

    Each module exposes ``register(registry)``.
    """
    for module_name in modules:
        module = importlib.import_module(module_name)
        module.register(registry)
    return registry


@lru_cache(maxsize=1)
def default_registry() -> DriverRegistry:
    """Return the process-wide registry with the bundled drivers (cached)."""
    return bootstrap(DriverRegistry())


def register(name: str, constructor: DriverConstructor) -> None:
    """Register a driver on the process-wide registry."""
    default_registry().register(name, constructor)


def new(config: NamedConfig) -> Store:
    """Construct a Store through the process-wide registry."""
    return default_registry().new(config)


def open_store(
    config: NamedConfig | None = None,
    registry: DriverRegistry | None = None,
) -> Store:
    """Build and set up a Store.

    Installs the storekit tracer provider first when STOREKIT_OTEL_ENABLED is
    set, so construction and setup are traced too.

    Args:
        config: Driver config. Defaults to config_from_env().
        registry: Registry to resolve the driver with. Defaults to default_registry().

    Returns:
        A Store whose setup() has completed.
    """
    if config is None:
        config = config_from_env()
    if registry is None:
        registry = default_registry()

    configure_tracing()
    store = registry.new(config)
    store.setup()
    logger.info("Opened object store: driver=%s", store.driver_name)
    return store
