#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("gitpusher")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_dir():
    """Directory holding gitpusher's configuration."""
    return Path.home() / '.gitpusher'


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GITPUSHER_CONFIG environment variable
    2. ~/.gitpusher/ directory
    """
    if 'GITPUSHER_CONFIG' in os.environ:
        path = Path(os.environ['GITPUSHER_CONFIG']).expanduser()
        if path.exists():
            return path

    config_dir = get_config_dir()
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config(config_path=None):
    """Load configuration from file, defaults and environment."""
    config_path = Path(config_path).expanduser() if config_path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            suffix = config_path.suffix.lower()
            if suffix == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif suffix in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        config = merge_configs(config, file_config)

    config = apply_env_overrides(config)

    # Fall back to the token most CI systems already export
    if not config['github'].get('token') and os.environ.get('GITHUB_TOKEN'):
        config['github']['token'] = os.environ['GITHUB_TOKEN']

    return config


def save_config(config, config_path=None):
    """Save configuration to file, keeping the file's format."""
    config_path = Path(config_path).expanduser() if config_path else get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'w') as f:
            toml.dump(config, f)
    elif suffix in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "github": {
            "token": "",
            "api_url": "https://api.github.com",
            "timeout_seconds": 30,
            "media_type": "application/vnd.github.v3+json",
        },
        "push": {
            "branch": "main",
            "commit_message": "Update files via GitPusher",
            "upload_mode": "sequential",
            "batch_size": 3,
            "author_name": "GitPusher",
            "author_email": "",
            "ref_update": {
                "max_retries": 3,
                "retry_delay_seconds": 1.0,
            },
        },
        "files": {
            "ignore_patterns": [".git", "node_modules", "__pycache__", ".DS_Store"],
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
    }


def configure_logging(config, verbose=False):
    """Apply the logging section of the config to the gitpusher logger."""
    log_config = config.get('logging', {})
    level_name = 'DEBUG' if verbose else str(log_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {level_name}")

    logger.setLevel(level)
    fmt = log_config.get('format')
    if fmt:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(logging.Formatter(fmt))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _coerce_env_value(value):
    """Convert an environment string to bool, int or float where it looks like one."""
    if value.lower() in ('true', 'yes', 'on'):
        return True
    if value.lower() in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: GITPUSHER_SECTION_SUBSECTION_KEY
    For example: GITPUSHER_PUSH_BATCH_SIZE=5
    """
    env_prefix = "GITPUSHER_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')
        typed_value = _coerce_env_value(value)

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                # Tokens and templates stay strings even if they look numeric
                if isinstance(current_level[matched_key], str):
                    current_level[matched_key] = value
                else:
                    current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config
