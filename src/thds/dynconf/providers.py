"""The two extension points, plus a handful of stock implementations.

An initializer runs once per base configuration, i.e. once per thread. A provider
runs on every resolution, against a private copy, and must not depend on the order
in which it runs relative to other providers.
"""
import hashlib
import os
import typing as ty

from thds.core import log

from .configuration import Configuration, add_to_cache_key, copy, read_configuration
from .context import RequestContext, ResourceLocator

logger = log.getLogger(__name__)


class ConfigurationInitializer(ty.Protocol):
    def initialize_configuration(self, configuration: Configuration) -> None:
        ...  # pragma: no cover


class ConfigurationProvider(ty.Protocol):
    def update_configuration(
        self, configuration: Configuration, context: RequestContext, locator: ResourceLocator
    ) -> None:
        ...  # pragma: no cover


class _FunctionAdapter:
    """Equal (and hash-equal) to any other adapter wrapping the same function,
    so that registering a function twice yields one provider.
    """

    def __init__(self, func: ty.Callable[..., None]):
        self.func = func

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.func == self.func  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.func))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({getattr(self.func, '__qualname__', self.func)})"


class _FunctionInitializer(_FunctionAdapter):
    def initialize_configuration(self, configuration: Configuration) -> None:
        self.func(configuration)


class _FunctionProvider(_FunctionAdapter):
    def update_configuration(
        self, configuration: Configuration, context: RequestContext, locator: ResourceLocator
    ) -> None:
        self.func(configuration, context, locator)


def initializer(func: ty.Callable[[Configuration], None]) -> ConfigurationInitializer:
    """Use a plain function (or decorate one) as a ConfigurationInitializer."""
    return _FunctionInitializer(func)


def provider(
    func: ty.Callable[[Configuration, RequestContext, ResourceLocator], None]
) -> ConfigurationProvider:
    """Use a plain function (or decorate one) as a ConfigurationProvider."""
    return _FunctionProvider(func)


class SettingsInitializer:
    """Layers TOML resource files, then explicit overrides, onto a base configuration.

    The resources are read here, once, rather than once per thread.
    """

    def __init__(
        self,
        resources: ty.Iterable[ty.Union[str, os.PathLike]] = (),
        overrides: ty.Optional[ty.Mapping[str, ty.Any]] = None,
    ):
        self.resources = tuple(resources)
        self._resource_configuration = read_configuration(self.resources).freeze()
        self.overrides = dict(overrides or {})

    def initialize_configuration(self, configuration: Configuration) -> None:
        copy(self._resource_configuration, configuration)
        configuration.update(self.overrides)

    def __repr__(self) -> str:
        return f"SettingsInitializer(resources={self.resources}, overrides={sorted(self.overrides)})"


class CompositeInitializer:
    """Runs each initializer in the order given."""

    def __init__(self, *initializers: ConfigurationInitializer):
        self.initializers = initializers

    def initialize_configuration(self, configuration: Configuration) -> None:
        for init in self.initializers:
            init.initialize_configuration(configuration)

    def __repr__(self) -> str:
        return f"CompositeInitializer{self.initializers}"


class AuthorityOverridesProvider:
    """Applies settings specific to one storage account/bucket/host, e.g.

    AuthorityOverridesProvider({"container@account.dfs.core.windows.net": {"fs.azure.retries": 3}})
    """

    def __init__(self, overrides: ty.Mapping[str, ty.Mapping[str, ty.Any]]):
        self.overrides = {authority.lower(): dict(settings) for authority, settings in overrides.items()}

    def update_configuration(
        self, configuration: Configuration, context: RequestContext, locator: ResourceLocator
    ) -> None:
        settings = self.overrides.get(locator.authority.lower())
        if settings:
            configuration.update(settings)


def _cache_key(*parts: str) -> str:
    return hashlib.sha256("\0".join(parts).encode()).hexdigest()[:16]


class ExtraCredentialProvider:
    """Passes a per-user credential from the request identity into the configuration.

    Because the resulting configuration is specific to that user and credential, a part
    is added to the cache key as well, so a downstream client cache does not hand one
    user's client to another.
    """

    def __init__(self, credential_name: str, configuration_key: str):
        self.credential_name = credential_name
        self.configuration_key = configuration_key

    def update_configuration(
        self, configuration: Configuration, context: RequestContext, locator: ResourceLocator
    ) -> None:
        credential = context.identity.extra_credentials.get(self.credential_name)
        if credential is None:
            return
        configuration.set(self.configuration_key, credential)
        add_to_cache_key(configuration, _cache_key(self.credential_name, context.user, credential))
        logger.debug("Applied extra credential", credential=self.credential_name, user=context.user)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ExtraCredentialProvider) and (
            (other.credential_name, other.configuration_key)
            == (self.credential_name, self.configuration_key)
        )

    def __hash__(self) -> int:
        return hash((self.credential_name, self.configuration_key))

    def __repr__(self) -> str:
        return f"ExtraCredentialProvider({self.credential_name!r} -> {self.configuration_key!r})"


class SessionPropertyProvider:
    """Copies session properties named `<prefix><key>` into the configuration as `<key>`."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    def update_configuration(
        self, configuration: Configuration, context: RequestContext, locator: ResourceLocator
    ) -> None:
        for name, value in context.session_properties.items():
            if name.startswith(self.prefix) and len(name) > len(self.prefix):
                configuration.set(name[len(self.prefix) :], value)
