"""Per-request resolution of storage connection configuration."""
from importlib.metadata import PackageNotFoundError, version

from . import base, configuration, context, errors, providers, resolver  # noqa: F401
from .base import BaseConfigurationCache  # noqa: F401
from .configuration import (  # noqa: F401
    Configuration,
    add_to_cache_key,
    copy,
    get_cache_key,
    initial_configuration,
    new_empty_configuration,
    read_configuration,
    set_cache_key,
)
from .context import Identity, RequestContext, ResourceLocator  # noqa: F401
from .errors import (  # noqa: F401
    ConstructionError,
    DynamicConfigurationError,
    FrozenConfigurationError,
    InitializationError,
    InvalidArgumentError,
    ProviderError,
)
from .providers import (  # noqa: F401
    AuthorityOverridesProvider,
    CompositeInitializer,
    ConfigurationInitializer,
    ConfigurationProvider,
    ExtraCredentialProvider,
    SessionPropertyProvider,
    SettingsInitializer,
    initializer,
    provider,
)
from .resolver import DynamicConfiguration  # noqa: F401

try:
    __version__ = version("thds.dynconf")
except PackageNotFoundError:  # pragma: no cover
    __version__ = ""
