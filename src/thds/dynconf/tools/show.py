"""Print the configuration a given user would get for a given URI.

    dynconf-show abfss://c@sa.dfs.core.windows.net/x --user ana --resource site.toml \
        --credential token=abc --credential-key token=fs.azure.account.oauth.token
"""
import argparse
import typing as ty

from thds.dynconf import __version__
from thds.dynconf.context import RequestContext, ResourceLocator
from thds.dynconf.providers import ExtraCredentialProvider, SettingsInitializer
from thds.dynconf.resolver import DynamicConfiguration


def _key_value(s: str) -> ty.Tuple[str, str]:
    key, sep, value = s.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{s}'")
    return key, value


def main(argv: ty.Optional[ty.Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0], prog="dynconf-show")
    parser.add_argument("-v", "--version", action="version", version=__version__)
    parser.add_argument("uri", type=ResourceLocator.parse, help="The resource to resolve configuration for")
    parser.add_argument("--user", default="anonymous")
    parser.add_argument("--resource", action="append", default=[], help="TOML file; may repeat")
    parser.add_argument("--set", action="append", type=_key_value, default=[], metavar="KEY=VALUE")
    parser.add_argument(
        "--credential", action="append", type=_key_value, default=[], metavar="NAME=VALUE"
    )
    parser.add_argument(
        "--credential-key",
        action="append",
        type=_key_value,
        default=[],
        metavar="NAME=CONFKEY",
        help="Copy the named credential into this configuration key",
    )
    args = parser.parse_args(argv)

    resolver = DynamicConfiguration(
        SettingsInitializer(args.resource, dict(args.set)),
        [ExtraCredentialProvider(name, key) for name, key in args.credential_key],
    )
    context = RequestContext.for_user(args.user, extra_credentials=dict(args.credential))
    for key, value in resolver.resolve(context, args.uri).items():
        print(f"{key} = {value}")


if __name__ == "__main__":
    main()
