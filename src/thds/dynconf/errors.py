import typing as ty

T = ty.TypeVar("T")


class DynamicConfigurationError(Exception):
    """Base class for everything this library raises on its own behalf."""


class ConstructionError(DynamicConfigurationError, TypeError):
    """A required collaborator was missing at construction time."""


class InvalidArgumentError(DynamicConfigurationError, ValueError):
    """A null or unparseable request context or resource locator."""


class FrozenConfigurationError(DynamicConfigurationError, TypeError):
    """Attempted to mutate a Configuration after it was frozen."""


class InitializationError(DynamicConfigurationError):
    """The initializer failed while building a base configuration.

    Nothing is cached when this is raised, so the next call retries.
    """

    def __init__(self, initializer: ty.Any, cause: BaseException):
        super().__init__(f"Initializer {initializer!r} failed: {cause!r}")
        self.initializer = initializer


class ProviderError(DynamicConfigurationError):
    """A provider failed while adjusting the working copy for one request."""

    def __init__(self, provider: ty.Any, locator: ty.Any, cause: BaseException):
        super().__init__(f"Provider {provider!r} failed for {locator}: {cause!r}")
        self.provider = provider
        self.locator = locator


def require(value: ty.Optional[T], name: str, error: ty.Type[Exception] = ConstructionError) -> T:
    if value is None:
        raise error(f"{name} is None")
    return value
