from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import yaml

from site_controller.models import SiteGroup

CONFIG_ENV = "SITE_CONTROLLER_CONFIG"
DEFAULT_CONFIG_NAME = "sites.json"
YAML_SUFFIXES = (".yaml", ".yml")

# JSON key -> SiteGroup field
_MEMBER_KEYS = {
    "appPools": "app_pools",
    "websites": "websites",
    "services": "services",
    "warm": "warm",
}


class ConfigError(Exception):
    pass


class ConfigNotFoundError(ConfigError):
    pass


class ConfigParseError(ConfigError):
    pass


def resolve_config_path(explicit: str | None = None) -> Path:
    """Locate the config file.

    An explicit path is used as given. Otherwise the file name is read from
    the SITE_CONTROLLER_CONFIG setting and, when relative, resolved against
    the directory of the running executable.
    """
    if explicit:
        return Path(explicit)
    name = Path(os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_NAME)
    if name.is_absolute():
        return name
    exe_dir = Path(sys.argv[0]).resolve().parent
    return exe_dir / name


def _string_list(site: str, key: str, value) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigParseError(f"Site {site!r}: {key!r} must be a list of strings")
    return list(value)


def load_config(path: str | Path) -> list[SiteGroup]:
    try:
        with open(path, encoding="utf-8-sig") as f:
            if Path(path).suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigNotFoundError(f"Config file not found: {path}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigParseError(f"Cannot parse config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigParseError(f"Config file {path} must contain an object with a 'sites' key")
    sites = data.get("sites") or []
    if not isinstance(sites, list):
        raise ConfigParseError(f"Config file {path}: 'sites' must be a list")

    groups = []
    for i, entry in enumerate(sites):
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise ConfigParseError(f"Config file {path}: site #{i} has no name")
        name = entry["name"]
        members = {
            attr: _string_list(name, key, entry.get(key))
            for key, attr in _MEMBER_KEYS.items()
        }
        groups.append(SiteGroup(name=name, **members))
    return groups
