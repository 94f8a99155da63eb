import pytest

from thds.dynconf.configuration import Configuration, get_cache_key
from thds.dynconf.context import RequestContext, ResourceLocator
from thds.dynconf.providers import (
    AuthorityOverridesProvider,
    CompositeInitializer,
    ExtraCredentialProvider,
    SessionPropertyProvider,
    SettingsInitializer,
    initializer,
    provider,
)

LOC = ResourceLocator.parse("abfss://container@Account.dfs.core.windows.net/x")


def test_settings_initializer_layers_resources_then_overrides(toml_file):
    init = SettingsInitializer(
        [toml_file('a = "from-file"\nb = "from-file"')], overrides={"b": "override", "c": 3}
    )
    conf = Configuration({"a": "initial", "z": "initial"})
    init.initialize_configuration(conf)
    assert conf.to_dict() == {"a": "from-file", "b": "override", "c": "3", "z": "initial"}


def test_settings_initializer_reads_resources_once(toml_file):
    resource = toml_file('a = "1"')
    init = SettingsInitializer([resource])
    resource.write_text('a = "2"')

    conf = Configuration()
    init.initialize_configuration(conf)
    assert conf["a"] == "1"


def test_settings_initializer_fails_fast_on_missing_resource(tmp_path):
    with pytest.raises(FileNotFoundError):
        SettingsInitializer([tmp_path / "nope.toml"])


def test_composite_initializer_runs_in_order():
    conf = Configuration()
    CompositeInitializer(
        initializer(lambda c: c.set("k", "first")),
        initializer(lambda c: c.set("k", c["k"] + ",second")),
    ).initialize_configuration(conf)
    assert conf["k"] == "first,second"


def test_authority_overrides_match_case_insensitively():
    p = AuthorityOverridesProvider(
        {"container@account.dfs.core.windows.net": {"fs.retries": 9}, "other": {"fs.retries": 1}}
    )
    conf = Configuration({"fs.retries": "3"})
    p.update_configuration(conf, RequestContext.for_user("ana"), LOC)
    assert conf["fs.retries"] == "9"

    untouched = Configuration({"fs.retries": "3"})
    p.update_configuration(untouched, RequestContext.for_user("ana"), ResourceLocator.parse("s3://b/k"))
    assert untouched["fs.retries"] == "3"


def test_extra_credential_sets_value_and_cache_key():
    p = ExtraCredentialProvider("azure-token", "fs.azure.token")
    ana = Configuration()
    p.update_configuration(ana, RequestContext.for_user("ana", extra_credentials={"azure-token": "t1"}), LOC)
    bob = Configuration()
    p.update_configuration(bob, RequestContext.for_user("bob", extra_credentials={"azure-token": "t2"}), LOC)

    assert ana["fs.azure.token"] == "t1"
    assert get_cache_key(ana) and get_cache_key(bob)
    assert get_cache_key(ana) != get_cache_key(bob)
    assert "t1" not in get_cache_key(ana)  # type: ignore[operator]


def test_extra_credential_absent_leaves_configuration_alone():
    conf = Configuration()
    ExtraCredentialProvider("azure-token", "fs.azure.token").update_configuration(
        conf, RequestContext.for_user("ana"), LOC
    )
    assert len(conf) == 0


def test_extra_credential_providers_compare_by_value():
    assert ExtraCredentialProvider("a", "b") == ExtraCredentialProvider("a", "b")
    assert len({ExtraCredentialProvider("a", "b"), ExtraCredentialProvider("a", "b")}) == 1
    assert ExtraCredentialProvider("a", "b") != ExtraCredentialProvider("a", "c")


def test_session_properties_with_prefix():
    ctx = RequestContext.for_user(
        "ana", session_properties={"storage.fs.retries": "4", "storage.": "ignored", "other": "x"}
    )
    conf = Configuration()
    SessionPropertyProvider("storage.").update_configuration(conf, ctx, LOC)
    assert conf.to_dict() == {"fs.retries": "4"}


def test_function_adapters_compare_by_wrapped_function():
    def f(conf, context, locator):
        conf.set("called", True)

    assert provider(f) == provider(f)
    assert hash(provider(f)) == hash(provider(f))
    assert provider(f) != initializer(f)
    assert "f" in repr(provider(f))

    conf = Configuration()
    provider(f).update_configuration(conf, RequestContext.for_user("ana"), LOC)
    assert conf["called"] == "true"


def _both_credentials(c1: str, c2: str) -> RequestContext:
    return RequestContext.for_user("ana", extra_credentials={"c1": c1, "c2": c2})


def _apply(providers, context: RequestContext) -> Configuration:
    conf = Configuration()
    for p in providers:
        p.update_configuration(conf, context, LOC)
    return conf


def test_cache_key_from_several_credentials_ignores_provider_order():
    p1 = ExtraCredentialProvider("c1", "k1")
    p2 = ExtraCredentialProvider("c2", "k2")
    ctx = _both_credentials("x", "y")

    forward, backward = _apply([p1, p2], ctx), _apply([p2, p1], ctx)
    assert forward == backward
    assert get_cache_key(forward) == get_cache_key(backward)


def test_cache_key_changes_when_any_credential_changes():
    providers = [ExtraCredentialProvider("c1", "k1"), ExtraCredentialProvider("c2", "k2")]
    base_key = get_cache_key(_apply(providers, _both_credentials("x", "y")))

    assert get_cache_key(_apply(providers, _both_credentials("OTHER", "y"))) != base_key
    assert get_cache_key(_apply(providers, _both_credentials("x", "OTHER"))) != base_key
