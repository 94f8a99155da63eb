"""The base configuration cache: one fully-initialized, frozen Configuration per
thread, built the first time that thread asks for it.

Building a base configuration means copying the process-wide initial snapshot into
an empty container and running the initializer against it, which may be slow.
Threads never share a base configuration and never see one that is half-built.

The calling thread is the default scope, but any object that accepts attribute
assignment can be passed as an explicit `handle` instead, e.g. to scope a base
configuration to a worker or connection, or to simulate threads in a test. Each
cache keeps its own slot on a handle, so one handle can be used with many caches.
"""
import itertools
import threading
import typing as ty

from thds.core import log
from thds.core.lazy import Lazy

from . import configuration
from .configuration import Configuration, copy, new_empty_configuration
from .errors import InitializationError, require
from .providers import ConfigurationInitializer

logger = log.getLogger(__name__)
_CACHE_IDS = itertools.count()
# never reused, unlike id(), so a long-lived handle can't see a slot left by a dead cache.


class _Slot:
    """One cache's base configuration for one handle."""

    def __init__(self, build: ty.Callable[[], Configuration]):
        self.initialized = False

        def build_and_mark() -> Configuration:
            base = build()
            self.initialized = True
            return base

        self.base = Lazy(build_and_mark)


class BaseConfigurationCache:
    def __init__(
        self,
        initializer: ConfigurationInitializer,
        *,
        initial: ty.Optional[Configuration] = None,
        storage: ty.Any = None,
    ):
        self._initializer = require(initializer, "initializer")
        self._initial = initial.freeze() if initial is not None else None
        self._storage = storage if storage is not None else threading.local()
        self._slot_name = f"_dynconf_base_{next(_CACHE_IDS)}"
        self._slot_lock = threading.Lock()

    @property
    def initializer(self) -> ConfigurationInitializer:
        return self._initializer

    def _initial_configuration(self) -> Configuration:
        return self._initial if self._initial is not None else configuration.initial_configuration()

    def _build(self) -> Configuration:
        base = new_empty_configuration()
        copy(self._initial_configuration(), base)
        try:
            self._initializer.initialize_configuration(base)
        except Exception as err:
            logger.error(
                "Failed to initialize base configuration",
                initializer=self._initializer,
                thread=threading.current_thread().name,
            )
            raise InitializationError(self._initializer, err) from err
        logger.debug("Initialized base configuration", thread=threading.current_thread().name)
        return base.freeze()

    def _slot(self, handle: ty.Any, create: bool = True) -> ty.Optional[_Slot]:
        scope = handle if handle is not None else self._storage
        slot = getattr(scope, self._slot_name, None)
        if slot is None and create:
            with self._slot_lock:
                slot = getattr(scope, self._slot_name, None)
                if slot is None:
                    slot = _Slot(self._build)
                    setattr(scope, self._slot_name, slot)
        return slot

    def get(self, handle: ty.Any = None) -> Configuration:
        slot = self._slot(handle)
        assert slot is not None
        return slot.base()

    def is_initialized(self, handle: ty.Any = None) -> bool:
        slot = self._slot(handle, create=False)
        return slot is not None and slot.initialized
