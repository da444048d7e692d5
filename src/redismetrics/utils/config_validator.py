"""
Configuration validation for reporter config files.

Checks the plain dictionary loaded from YAML/JSON before it is turned into a
ReporterConfig, and fixes the mistakes that have an obvious correction:
- ``server: "host:port"`` strings instead of separate host/port
- ports given as strings
- time unit names in the wrong case
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from ..units import TimeUnit

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when configuration validation fails."""
    pass


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Load a YAML or JSON config file and return its reporter section."""
    path = Path(config_path)
    with open(path, "r") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path}: expected a mapping at the top level")
    section = data.get("reporter", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"{config_path}: 'reporter' section must be a mapping")
    return dict(section)


class ReporterConfigValidator:
    """Validates reporter configuration dictionaries."""

    KNOWN_FIELDS = {
        'host',
        'port',
        'db',
        'password',
        'socket_timeout_s',
        'rate_unit',
        'duration_unit',
        'locale',
        'time_zone',
        'include_prefixes',
        'period_s',
        'initial_delay_s',
    }

    UNIT_FIELDS = ('rate_unit', 'duration_unit')

    @classmethod
    def fix(cls, config: Dict[str, Any]) -> List[str]:
        """Apply automatic fixes in place and describe each one."""
        fixes = []

        if 'server' in config:
            server = str(config.pop('server'))
            host, _, port = server.rpartition(':')
            if host and port.isdigit():
                config.setdefault('host', host)
                config.setdefault('port', int(port))
            else:
                config.setdefault('host', server)
            fixes.append(f"Split server '{server}' into host/port")

        port = config.get('port')
        if isinstance(port, str) and port.strip().isdigit():
            config['port'] = int(port)
            fixes.append(f"Converted port '{port}' to an integer")

        for field in cls.UNIT_FIELDS:
            value = config.get(field)
            if isinstance(value, str) and value != value.strip().lower():
                config[field] = value.strip().lower()
                fixes.append(f"Normalized {field} '{value}' to '{config[field]}'")

        for message in fixes:
            logger.warning(f"Config fix: {message}")

        return fixes

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Validate a reporter configuration dictionary."""
        errors = []

        unknown = set(config.keys()) - cls.KNOWN_FIELDS
        if unknown:
            errors.append(f"Unknown configuration fields: {sorted(unknown)}")

        host = config.get('host', 'localhost')
        if not isinstance(host, str) or not host.strip():
            errors.append("host must be a non-empty string")

        port = config.get('port', 6379)
        if not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
            errors.append(f"port must be an integer in 1-65535, got {port!r}")

        db = config.get('db', 0)
        if not isinstance(db, int) or db < 0:
            errors.append(f"db must be a non-negative integer, got {db!r}")

        for field in cls.UNIT_FIELDS:
            if field in config:
                try:
                    TimeUnit.parse(config[field])
                except ValueError as e:
                    errors.append(f"{field}: {e}")

        for field in ('period_s', 'socket_timeout_s', 'initial_delay_s'):
            value = config.get(field)
            if value is None:
                continue
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                errors.append(f"{field} must be a number, got {value!r}")
            elif field == 'initial_delay_s' and value < 0:
                errors.append(f"{field} must not be negative, got {value}")
            elif field != 'initial_delay_s' and value <= 0:
                errors.append(f"{field} must be positive, got {value}")

        time_zone = config.get('time_zone')
        if time_zone is not None:
            try:
                ZoneInfo(str(time_zone))
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(f"Unknown time_zone: {time_zone}")

        prefixes = config.get('include_prefixes', [])
        if not isinstance(prefixes, (list, tuple)) or not all(isinstance(p, str) for p in prefixes):
            errors.append("include_prefixes must be a list of strings")

        return errors


def validate_and_fix_config(config_path: str) -> Tuple[bool, List[str], Optional[Dict[str, Any]]]:
    """Validate a configuration file and fix what can be fixed.

    Returns:
        Tuple of (is_valid, errors, fixed_config)
    """
    try:
        config = read_config_file(config_path)
    except (OSError, yaml.YAMLError, json.JSONDecodeError, ConfigurationError) as e:
        return False, [f"Failed to load config: {e}"], None

    ReporterConfigValidator.fix(config)
    errors = ReporterConfigValidator.validate(config)

    if errors:
        logger.error(f"Configuration has {len(errors)} errors")
    else:
        logger.info("Configuration validated successfully")

    return len(errors) == 0, errors, config
