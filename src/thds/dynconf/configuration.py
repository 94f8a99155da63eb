"""The key/value container handed to storage clients, plus the process-wide initial
snapshot every base configuration is seeded from.

Keys and values are strings. Non-string values are stored in their string form
(booleans as 'true'/'false', sequences comma-joined) so that a Configuration
compares the same whether it was built in code or read from a TOML resource.
"""
import os
import tomllib
import typing as ty
from pathlib import Path

from thds.core import config, log
from thds.core.lazy import Lazy

from .errors import FrozenConfigurationError

logger = log.getLogger(__name__)

CACHE_KEY = "thds.dynconf.cache-key"
# providers set this when they make per-request changes that client caches must not share.


def _parse_resources(s: ty.Any) -> ty.Tuple[str, ...]:
    if isinstance(s, str):
        return tuple(p.strip() for p in s.split(",") if p.strip())
    return tuple(map(str, s))


RESOURCES = config.item("thds.dynconf.resources", (), parse=_parse_resources)
# TOML files layered over DEFAULTS to build the initial snapshot.

DEFAULTS: ty.Mapping[str, str] = {
    "io.file.buffer.size": "65536",
    "ipc.client.connect.max.retries": "10",
    "ipc.client.connect.timeout": "20000",
}


def _to_str(value: ty.Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(map(_to_str, value))
    return str(value)


class Configuration:
    def __init__(self, entries: ty.Optional[ty.Mapping[str, ty.Any]] = None):
        self._entries: ty.Dict[str, str] = dict()
        self._frozen = False
        if entries:
            self.update(entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "Configuration":
        """Permanently read-only from here on."""
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise FrozenConfigurationError("Configuration is frozen; make a copy to change it.")

    def set(self, key: str, value: ty.Any) -> None:
        self._check_mutable()
        self._entries[key] = _to_str(value)

    def unset(self, key: str) -> None:
        self._check_mutable()
        self._entries.pop(key, None)

    def update(self, entries: ty.Mapping[str, ty.Any]) -> None:
        self._check_mutable()
        for key, value in entries.items():
            self._entries[key] = _to_str(value)

    def get(self, key: str, default: ty.Optional[str] = None) -> ty.Optional[str]:
        return self._entries.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        value = self._entries.get(key)
        return default if value is None else int(value.strip())

    def get_bool(self, key: str, default: bool) -> bool:
        value = self._entries.get(key)
        return default if value is None else config.tobool(value)

    def items(self) -> ty.Iterator[ty.Tuple[str, str]]:
        return ((key, self._entries[key]) for key in self)

    def to_dict(self) -> ty.Dict[str, str]:
        return dict(self._entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> ty.Iterator[str]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Configuration):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "mutable"
        return f"<Configuration {state} with {len(self)} entries at {hex(id(self))}>"


def new_empty_configuration() -> Configuration:
    return Configuration()


def copy(source: Configuration, into: ty.Optional[Configuration] = None) -> Configuration:
    """With no target, returns a new mutable Configuration holding the same entries.

    Otherwise every entry of source is written into the existing target, overwriting
    keys it already has, and the target is returned.
    """
    target = into if into is not None else new_empty_configuration()
    target.update(source.to_dict())
    return target


def _flatten(table: ty.Mapping[str, ty.Any], prefix: str = "") -> ty.Iterator[ty.Tuple[str, ty.Any]]:
    for key, value in table.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from _flatten(value, name)
        else:
            yield name, value


def read_configuration(paths: ty.Iterable[ty.Union[str, os.PathLike]]) -> Configuration:
    """Later files override earlier ones. Nested TOML tables become dotted keys."""
    configuration = new_empty_configuration()
    for path in map(Path, paths):
        if not path.is_file():
            raise FileNotFoundError(f"Configuration resource does not exist: {path}")
        logger.debug("Reading configuration resource %s", path)
        with open(path, "rb") as f:
            configuration.update(dict(_flatten(tomllib.load(f))))
    return configuration


def set_cache_key(configuration: Configuration, key: str) -> None:
    configuration.set(CACHE_KEY, key)


def get_cache_key(configuration: Configuration) -> ty.Optional[str]:
    return configuration.get(CACHE_KEY)


def add_to_cache_key(configuration: Configuration, part: str) -> None:
    """Fold one more part into the cache key.

    The parts are kept sorted, so the result is the same whichever order several
    providers add their parts in, and a change to any one part changes the key.
    """
    existing = get_cache_key(configuration)
    parts = set(existing.split(",")) if existing else set()
    parts.add(part)
    set_cache_key(configuration, ",".join(sorted(parts)))


def build_initial_configuration(resources: ty.Iterable[ty.Union[str, os.PathLike]] = ()) -> Configuration:
    """For callers that manage the snapshot's lifecycle themselves and pass it down
    explicitly as `initial=`.
    """
    return copy(read_configuration(resources), Configuration(DEFAULTS)).freeze()


def _initial_from_settings() -> Configuration:
    resources = _parse_resources(RESOURCES())
    # set_local does not parse, so the value may still be a raw string.
    initial = build_initial_configuration(resources)
    logger.info("Built initial configuration", resources=",".join(resources) or None)
    return initial


initial_configuration = Lazy(_initial_from_settings)
# the process-wide snapshot: computed once, on first use from any thread, then shared read-only.
