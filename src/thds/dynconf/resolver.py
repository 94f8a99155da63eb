"""Resolves the Configuration to open a storage connection with, for one request.

    resolver = DynamicConfiguration(SettingsInitializer(["site.toml"]), [ExtraCredentialProvider(...)])
    conf = resolver.resolve(RequestContext.for_user("ana"), "abfss://c@sa.dfs.core.windows.net/x")

Every Configuration returned is frozen. With no providers registered, the calling
thread's base configuration is returned as-is, which is safe only because nothing can
change it. Otherwise each call gets its own copy, adjusted by every provider.
"""
import typing as ty

from thds.core import log

from .base import BaseConfigurationCache
from .configuration import Configuration, copy
from .context import LocatorIsh, RequestContext, ResourceLocator
from .errors import InvalidArgumentError, ProviderError, require
from .providers import ConfigurationInitializer, ConfigurationProvider

logger = log.getLogger(__name__)


def _dedupe(providers: ty.Iterable[ConfigurationProvider]) -> ty.Tuple[ConfigurationProvider, ...]:
    unique: ty.List[ConfigurationProvider] = list()
    for p in providers:
        if not any(p is u or p == u for u in unique):
            unique.append(p)
    return tuple(unique)


class DynamicConfiguration:
    def __init__(
        self,
        initializer: ConfigurationInitializer,
        providers: ty.Iterable[ConfigurationProvider],
        *,
        initial: ty.Optional[Configuration] = None,
        storage: ty.Any = None,
    ):
        require(initializer, "initializer")
        self._providers = _dedupe(require(providers, "providers"))
        self._base = BaseConfigurationCache(initializer, initial=initial, storage=storage)

    @property
    def providers(self) -> ty.Tuple[ConfigurationProvider, ...]:
        return self._providers

    @property
    def base(self) -> BaseConfigurationCache:
        return self._base

    def resolve(
        self, context: RequestContext, locator: LocatorIsh, handle: ty.Any = None
    ) -> Configuration:
        require(context, "context", InvalidArgumentError)
        locator = ResourceLocator.of(require(locator, "locator", InvalidArgumentError))

        if not self._providers:
            # the same frozen configuration for everything
            return self._base.get(handle)

        configuration = copy(self._base.get(handle))
        for p in self._providers:
            try:
                p.update_configuration(configuration, context, locator)
            except Exception as err:
                logger.error("Configuration provider failed", provider=p, locator=str(locator))
                raise ProviderError(p, locator, err) from err
        return configuration.freeze()
