#!/usr/bin/env python3
"""
Configuration Manager for the public AMI cleanup tool

This module handles loading and managing configuration from config.yaml
and environment variables, and builds the boto3 session the providers use.
"""

import logging
import os
import re
from typing import Any, Dict, List, Optional

import boto3
import yaml
from botocore.exceptions import BotoCoreError

from ami_cleanup.error_utils import ActionableError, create_aws_credentials_error, create_config_error

DEFAULT_REGIONS = [
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "eu-central-1",
    "ca-central-1",
    "ap-southeast-2",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

CONFIG_SECTIONS = ("aws", "ui", "logging")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""


class ConfigManager:
    """Manages configuration for the public AMI cleanup tool"""

    def __init__(self, config_file: str = None, validate: bool = True):
        """Initialize ConfigManager

        Args:
            config_file: Path to configuration YAML file (defaults to config.yaml or CONFIG_FILE env var)
            validate: If True, validate configuration on initialization
        """
        if config_file is None:
            config_file = os.environ.get("CONFIG_FILE", "config.yaml")
        self.config_file = config_file
        self.config = self._load_config()

        if validate:
            self.validate_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file with defaults"""
        default_config = {
            "aws": {
                "profile": None,
                "owners": ["self"],
                "name_filter": "capa-ami-*",
                "canonical_region": "us-east-1",
                "regions": list(DEFAULT_REGIONS),
            },
            "ui": {"show_help": True, "hide_private": False},
            "logging": {"level": "INFO", "file": "public-ami-cleanup.log"},
        }

        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r") as f:
                    user_config = yaml.safe_load(f) or {}
                if not isinstance(user_config, dict):
                    raise ConfigValidationError(
                        f"Config file {self.config_file} must contain a mapping, got {type(user_config).__name__}"
                    )
                return self._merge_config(default_config, user_config)
            else:
                logging.warning(f"Config file {self.config_file} not found, using defaults")
                return default_config
        except (OSError, yaml.YAMLError) as e:
            logging.error(f"Error loading config file: {e}")
            return default_config

    def _merge_config(self, default: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge user config with defaults"""
        result = default.copy()
        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    # AWS configuration
    def get_aws_profile(self) -> Optional[str]:
        """Get AWS profile from environment or config (None means the default chain)"""
        return os.environ.get("AWS_PROFILE") or self.config["aws"].get("profile") or None

    def get_owners(self) -> List[str]:
        """Get the image owner scope passed to DescribeImages"""
        return _as_list(self.config["aws"].get("owners"))

    def get_name_filter(self) -> str:
        """Get the AMI name filter from environment or config"""
        return os.environ.get("AMI_NAME_FILTER") or self.config["aws"]["name_filter"]

    def get_name_prefix(self) -> str:
        """Get the literal prefix of the name filter, used in user-facing messages"""
        return self.get_name_filter().split("*")[0]

    def get_canonical_region(self) -> str:
        """Get the region whose AMIs are treated as lineage roots"""
        return os.environ.get("AMI_CANONICAL_REGION") or self.config["aws"]["canonical_region"]

    def get_regions(self) -> List[str]:
        """Get regions to scan. AMI_REGIONS takes a comma separated list"""
        env_regions = os.environ.get("AMI_REGIONS")
        if env_regions:
            return _as_list(env_regions)
        return _as_list(self.config["aws"].get("regions"))

    def get_session(self) -> boto3.Session:
        """Build a boto3 session and make sure credentials can be resolved

        Raises:
            ActionableError: If the profile is unknown or no credentials are found
        """
        profile = self.get_aws_profile()
        try:
            session = boto3.Session(profile_name=profile)
            credentials = session.get_credentials()
        except BotoCoreError as e:
            raise create_aws_credentials_error(profile, e) from e

        if credentials is None:
            raise create_aws_credentials_error(profile)
        return session

    # UI configuration
    def show_help_by_default(self) -> bool:
        """Whether the help panel is open when the screen first appears"""
        return bool(self.config["ui"].get("show_help", True))

    def hide_private_by_default(self) -> bool:
        """Whether private AMIs start hidden"""
        return bool(self.config["ui"].get("hide_private", False))

    # Logging configuration
    def get_log_level(self) -> int:
        """Get the logging level as a logging module constant"""
        level = self.config["logging"].get("level", "INFO")
        name = str(level).upper()
        if name not in LOG_LEVELS:
            raise create_config_error("logging.level", level, f"unknown level '{level}'")
        return getattr(logging, name)

    def get_log_file(self) -> str:
        """Get the file that receives logs while the interactive screen is up"""
        return self.config["logging"].get("file") or "public-ami-cleanup.log"

    def validate_config(self) -> None:
        """Validate configuration values

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        # Every getter below indexes into these sections
        errors = [
            f"'{section}' must be a mapping, got {type(self.config.get(section)).__name__}"
            for section in CONFIG_SECTIONS
            if not isinstance(self.config.get(section), dict)
        ]
        if errors:
            self._raise_validation_error(errors)

        warnings = []

        regions = self.get_regions()
        if not regions:
            errors.append("At least one region is required")
        for region in regions:
            if not self._is_valid_region(region):
                errors.append(f"Region '{region}' is not a valid AWS region name (expected e.g. us-east-1)")
        if len(set(regions)) != len(regions):
            warnings.append("Region list contains duplicates; each region is only scanned once")

        canonical_region = self.get_canonical_region()
        if not canonical_region or not canonical_region.strip():
            errors.append("canonical_region is required and cannot be empty")
        elif canonical_region not in regions:
            errors.append(f"canonical_region '{canonical_region}' must be one of the scanned regions")

        name_filter = self.get_name_filter()
        if not name_filter or not name_filter.strip():
            errors.append("name_filter is required and cannot be empty")
        elif "*" not in name_filter:
            warnings.append(f"name_filter '{name_filter}' has no wildcard and only matches one exact name")

        if not self.get_owners():
            errors.append("owners is required and cannot be empty")

        try:
            self.get_log_level()
        except ActionableError as e:
            errors.append(f"logging.level is invalid: {e.details['reason']}")

        for warning in warnings:
            logging.warning(f"Configuration warning: {warning}")

        if errors:
            self._raise_validation_error(errors)

    def _raise_validation_error(self, errors: List[str]) -> None:
        error_msg = "Configuration validation failed:\n  " + "\n  ".join(errors)
        logging.error(error_msg)
        raise ConfigValidationError(error_msg)

    def _is_valid_region(self, region: str) -> bool:
        """Validate AWS region name format"""
        if not region:
            return False
        pattern = r"^[a-z]{2}(-gov)?-[a-z]+-\d$"
        return bool(re.match(pattern, region))


def _as_list(value: Any) -> List[str]:
    """Accept either a list or a comma separated string"""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]
