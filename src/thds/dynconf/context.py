"""Who is asking, and for what."""
import typing as ty
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import urlsplit

from .errors import InvalidArgumentError

_EMPTY: ty.Mapping[str, str] = MappingProxyType({})


def _frozen_mapping(mapping: ty.Optional[ty.Mapping[str, str]]) -> ty.Mapping[str, str]:
    return MappingProxyType(dict(mapping)) if mapping else _EMPTY


@dataclass(frozen=True)
class Identity:
    user: str
    groups: ty.FrozenSet[str] = frozenset()
    extra_credentials: ty.Mapping[str, str] = field(default_factory=lambda: _EMPTY, hash=False, repr=False)
    # credentials are kept out of the repr so they don't end up in logs.

    def __post_init__(self):
        object.__setattr__(self, "groups", frozenset(self.groups))
        object.__setattr__(self, "extra_credentials", _frozen_mapping(self.extra_credentials))


@dataclass(frozen=True)
class RequestContext:
    identity: Identity
    query_id: ty.Optional[str] = None
    source: ty.Optional[str] = None
    session_properties: ty.Mapping[str, str] = field(default_factory=lambda: _EMPTY, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "session_properties", _frozen_mapping(self.session_properties))

    @staticmethod
    def for_user(
        user: str,
        *,
        groups: ty.Iterable[str] = (),
        extra_credentials: ty.Optional[ty.Mapping[str, str]] = None,
        **kwargs: ty.Any,
    ) -> "RequestContext":
        identity = Identity(user, frozenset(groups), extra_credentials or _EMPTY)
        return RequestContext(identity, **kwargs)

    @property
    def user(self) -> str:
        return self.identity.user


class ResourceLocator(ty.NamedTuple):
    """A parsed URI for the resource being opened.

    Construct with `parse` or `of` to get validation. The scheme is lower-cased and
    the query and fragment stay on the path, so `str()` gives back the URI in the
    normalized form `scheme://authority/path?query#fragment`.
    """

    scheme: str
    authority: str
    path: str

    def __str__(self) -> str:
        return f"{self.scheme}://{self.authority}{self.path}"

    @staticmethod
    def parse(uri: str) -> "ResourceLocator":
        parts = urlsplit(uri)
        if not parts.scheme:
            raise InvalidArgumentError(f"Resource locator has no scheme: '{uri}'")
        path = parts.path
        if parts.query:
            path += "?" + parts.query
        if parts.fragment:
            path += "#" + parts.fragment
        return ResourceLocator(parts.scheme.lower(), parts.netloc, path)

    @staticmethod
    def of(uri_or_locator: ty.Union[str, "ResourceLocator"]) -> "ResourceLocator":
        if isinstance(uri_or_locator, ResourceLocator):
            return uri_or_locator
        if isinstance(uri_or_locator, str):
            return ResourceLocator.parse(uri_or_locator)
        raise InvalidArgumentError(f"Not a resource locator: {uri_or_locator!r}")


LocatorIsh = ty.Union[str, ResourceLocator]
