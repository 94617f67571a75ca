"""
Strategy Registry

`Authenticator` holds the strategies that are active for this process, keyed by provider name.
The web handlers look strategies up here, and the login page lists only what is registered.

`setup_strategy` registers a provider only when its configuration is complete. A host can
declare every optional provider at startup and only those with credentials become active;
the rest are skipped with a diagnostic log line and never appear as a login option.
"""

import functools
import logging
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from social.graze.identity.auth.login import Verify, oauth_v2
from social.graze.identity.auth.store import IdentityStore
from social.graze.identity.auth.strategy import Strategy, StrategyConfig

logger = logging.getLogger(__name__)


class Authenticator:
    """
    Registry of active authentication strategies.
    """

    def __init__(self) -> None:
        self._strategies: Dict[str, Strategy] = {}

    def use(self, strategy: Strategy) -> None:
        """
        Register a strategy under its name, replacing any earlier one.

        Raises:
            ValueError: If the strategy has no name
        """
        name = getattr(strategy, "name", None)
        if not name:
            raise ValueError("Authentication strategies must have a name")
        if name in self._strategies:
            logger.warning("replacing strategy for provider:%s", name)
        self._strategies[name] = strategy

    def get(self, name: str) -> Optional[Strategy]:
        return self._strategies.get(name)

    def names(self) -> List[str]:
        return sorted(self._strategies)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)


def missing_settings(config: Union[StrategyConfig, Mapping[str, Any]]) -> List[str]:
    """
    Names of the settings missing from a provider configuration.

    A `StrategyConfig` is checked against its declared required fields and reports environment
    variable names. For a plain mapping every key is required and the key itself is reported.
    A value of None counts as missing.
    """
    if isinstance(config, StrategyConfig):
        return [config.env_name(field) for field in config.missing_fields()]
    return [key for key, value in config.items() if value is None]


def setup_strategy(
    *,
    provider: str,
    strategy: Type[Strategy],
    config: Union[StrategyConfig, Mapping[str, Any]],
    passport: Authenticator,
    oauth: Optional[Verify] = None,
    store: Optional[IdentityStore] = None,
) -> bool:
    """
    Register a provider's strategy when its configuration is complete.

    Args:
        provider: Provider name used in log lines
        strategy: Strategy class, constructed as ``strategy(config, oauth)``
        config: Provider configuration
        passport: Registry to register into
        oauth: Verify callable; defaults to `oauth_v2` bound to `store`
        store: Identity store for the default verify callable

    Returns:
        bool: True if the strategy was registered, False if the provider was skipped

    Raises:
        ValueError: If the configuration is complete but neither `oauth` nor `store` is given
    """
    missing = missing_settings(config)
    if missing:
        for name in missing:
            logger.debug("provider:%s: needs environment var %s", provider, name)
        logger.debug("provider:%s will not initialize", provider)
        return False

    if oauth is None:
        if store is None:
            raise ValueError(f"provider:{provider} needs an identity store or oauth callback")
        oauth = functools.partial(oauth_v2, store)

    logger.debug("initializing provider:%s", provider)

    passport.use(strategy(config, oauth))
    return True
