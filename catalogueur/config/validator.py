"""Configuration validation."""

import logging
from typing import Dict, Any, List

logger = logging.getLogger(__name__)


VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class ValidationError(Exception):
    """Configuration validation errors."""
    pass


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    All problems are collected and reported together.

    Args:
        config: Configuration dictionary from loader

    Raises:
        ValidationError: If configuration is invalid
    """
    errors = []

    errors.extend(_validate_giantbomb(config.get('giantbomb') or {}))
    errors.extend(_validate_gog(config.get('gog') or {}))
    errors.extend(_validate_tvtropes(config.get('tvtropes') or {}))
    errors.extend(_validate_crawler(config.get('crawler') or {}))
    errors.extend(_validate_api(config.get('api') or {}))
    errors.extend(_validate_logging(config.get('logging') or {}))

    if errors:
        raise ValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def _is_section(section: Any, name: str, errors: List[str]) -> bool:
    if not isinstance(section, dict):
        errors.append(f"{name} must be a mapping")
        return False
    return True


def _validate_giantbomb(section: Dict[str, Any]) -> List[str]:
    """Validate giantbomb section."""
    errors = []
    if not _is_section(section, 'giantbomb', errors):
        return errors

    api_key = section.get('api_key')
    if api_key is not None and not isinstance(api_key, str):
        errors.append("giantbomb.api_key must be a string")

    return errors


def _validate_gog(section: Dict[str, Any]) -> List[str]:
    """Validate gog section."""
    errors = []
    if not _is_section(section, 'gog', errors):
        return errors

    for key in ('locale', 'country', 'currency'):
        value = section.get(key)
        if value is not None and (not isinstance(value, str) or not value):
            errors.append(f"gog.{key} must be a non-empty string")

    return errors


def _validate_tvtropes(section: Dict[str, Any]) -> List[str]:
    """Validate tvtropes section."""
    errors = []
    if not _is_section(section, 'tvtropes', errors):
        return errors

    for key in ('categories', 'blacklisted_words'):
        value = section.get(key)
        if value is None:
            continue
        if not isinstance(value, list):
            errors.append(f"tvtropes.{key} must be a list")
        elif any(not isinstance(v, str) for v in value):
            errors.append(f"tvtropes.{key} entries must be strings")

    if section.get('categories') == []:
        errors.append("tvtropes.categories must not be empty")

    return errors


def _validate_crawler(section: Dict[str, Any]) -> List[str]:
    """Validate crawler pacing section."""
    errors = []
    if not _is_section(section, 'crawler', errors):
        return errors

    min_delay = section.get('min_delay_ms', 500)
    max_delay = section.get('max_delay_ms', 2000)

    if not isinstance(min_delay, int) or min_delay < 0:
        errors.append("crawler.min_delay_ms must be a non-negative integer")
    if not isinstance(max_delay, int) or max_delay < 0:
        errors.append("crawler.max_delay_ms must be a non-negative integer")
    elif isinstance(min_delay, int) and max_delay >= 1 and max_delay < min_delay:
        errors.append("crawler.max_delay_ms must be >= crawler.min_delay_ms (or 0 to disable)")

    timeout = section.get('timeout', 30)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("crawler.timeout must be a positive number")

    return errors


def _validate_api(section: Dict[str, Any]) -> List[str]:
    """Validate api section."""
    errors = []
    if not _is_section(section, 'api', errors):
        return errors

    timeout = section.get('request_timeout', 30)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("api.request_timeout must be a positive number")

    rph = section.get('requests_per_hour', 200)
    if not isinstance(rph, int) or not 1 <= rph <= 10000:
        errors.append("api.requests_per_hour must be an integer between 1 and 10000")

    user_agent = section.get('user_agent')
    if user_agent is not None and (not isinstance(user_agent, str) or not user_agent.strip()):
        errors.append("api.user_agent must be a non-empty string")

    return errors


def _validate_logging(section: Dict[str, Any]) -> List[str]:
    """Validate logging section."""
    errors = []
    if not _is_section(section, 'logging', errors):
        return errors

    level = section.get('level', 'INFO')
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        errors.append(f"logging.level must be one of: {', '.join(VALID_LOG_LEVELS)}")

    console = section.get('console', True)
    if not isinstance(console, bool):
        errors.append("logging.console must be true or false")

    log_file = section.get('file')
    if log_file is not None and not isinstance(log_file, str):
        errors.append("logging.file must be a path string")

    return errors
