import typing as ty
from pathlib import Path

import pytest

from thds.core.lazy import Lazy
from thds.dynconf import configuration


@pytest.fixture(autouse=True)
def fresh_initial_configuration(monkeypatch):
    monkeypatch.setattr(
        configuration, "initial_configuration", Lazy(configuration._initial_from_settings)
    )


@pytest.fixture
def toml_file(tmp_path: Path) -> ty.Callable[[str], Path]:
    counter = 0

    def make_toml_file(some_toml: str) -> Path:
        nonlocal counter
        counter += 1
        p = tmp_path / f"resource-{counter}.toml"
        p.write_text(some_toml)
        return p

    return make_toml_file
