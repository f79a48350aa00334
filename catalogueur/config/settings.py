"""
Immutable per-backend settings.

Built once from the configuration dictionary and handed to each backend at
construction; nothing reads configuration globally afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from catalogueur.api.fetcher import DEFAULT_USER_AGENT
from catalogueur.config.loader import get_config_value


@dataclass(frozen=True)
class ApiSettings:
    """HTTP settings shared by every backend."""
    request_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class GiantBombSettings:
    api_key: str = ""
    requests_per_hour: int = 200


@dataclass(frozen=True)
class GogSettings:
    locale: str = "en-US"
    country: str = "US"
    currency: str = "USD"


@dataclass(frozen=True)
class TvTropesSettings:
    categories: Tuple[str, ...] = ("VideoGame", "VisualNovel")
    blacklisted_words: Tuple[str, ...] = ("deconstructed", "averted", "inverted", "subverted")


@dataclass(frozen=True)
class CrawlerSettings:
    min_delay_ms: int = 500
    max_delay_ms: int = 2000
    timeout: float = 30.0


def api_settings(config: Dict[str, Any]) -> ApiSettings:
    return ApiSettings(
        request_timeout=float(get_config_value(config, 'api.request_timeout', 30.0)),
        user_agent=get_config_value(config, 'api.user_agent', DEFAULT_USER_AGENT),
    )


def giantbomb_settings(config: Dict[str, Any]) -> GiantBombSettings:
    return GiantBombSettings(
        api_key=get_config_value(config, 'giantbomb.api_key', '') or '',
        requests_per_hour=int(get_config_value(config, 'api.requests_per_hour', 200)),
    )


def gog_settings(config: Dict[str, Any]) -> GogSettings:
    return GogSettings(
        locale=get_config_value(config, 'gog.locale', 'en-US'),
        country=get_config_value(config, 'gog.country', 'US'),
        currency=get_config_value(config, 'gog.currency', 'USD'),
    )


def tvtropes_settings(config: Dict[str, Any]) -> TvTropesSettings:
    defaults = TvTropesSettings()
    return TvTropesSettings(
        categories=tuple(get_config_value(config, 'tvtropes.categories', defaults.categories)),
        blacklisted_words=tuple(
            get_config_value(config, 'tvtropes.blacklisted_words', defaults.blacklisted_words)
        ),
    )


def crawler_settings(config: Dict[str, Any]) -> CrawlerSettings:
    return CrawlerSettings(
        min_delay_ms=int(get_config_value(config, 'crawler.min_delay_ms', 500)),
        max_delay_ms=int(get_config_value(config, 'crawler.max_delay_ms', 2000)),
        timeout=float(get_config_value(config, 'crawler.timeout', 30.0)),
    )
