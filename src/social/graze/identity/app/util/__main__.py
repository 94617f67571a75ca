import argparse

from social.graze.identity.app.config import Settings
from social.graze.identity.auth.passport import missing_settings
from social.graze.identity.auth.providers import PROVIDER_STRATEGIES


def checkProviders(settings: Settings) -> None:
    for provider in PROVIDER_STRATEGIES:
        config = settings.strategy_config(provider)
        missing = missing_settings(config)
        if missing:
            print(f"{provider}: disabled (missing {', '.join(missing)})")
        else:
            print(f"{provider}: enabled, callback {config.callback_url}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="identityutil", description="Identity service utilities"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    _ = subparsers.add_parser(
        "check-providers",
        help="Show which providers will initialize with the current environment",
    )

    args = vars(parser.parse_args())
    command = args.get("command", None)

    if command == "check-providers":
        checkProviders(Settings())  # type: ignore


if __name__ == "__main__":
    main()
