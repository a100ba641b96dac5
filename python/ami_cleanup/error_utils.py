"""
Error message utilities for providing actionable guidance to users.

This module provides functions to create helpful error messages with
suggested fixes for the failures that stop the tool before the
interactive screen comes up.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCategory(Enum):
    """Categories of errors for better error handling"""
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class ActionableError(Exception):
    """Exception with actionable guidance for users"""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN,
                 suggestions: Optional[List[str]] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize actionable error

        Args:
            message: Primary error message
            category: Error category for classification
            suggestions: List of suggested fixes
            details: Additional context information
        """
        self.message = message
        self.category = category
        self.suggestions = suggestions or []
        self.details = details or {}
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message with suggestions"""
        lines = [f"❌ {self.message}"]

        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        if self.details:
            lines.append("\n📋 Additional details:")
            for key, value in self.details.items():
                lines.append(f"   {key}: {value}")

        return "\n".join(lines)


def create_aws_credentials_error(profile: Optional[str], error: Optional[Exception] = None) -> ActionableError:
    """Create actionable error for AWS credential/profile failures"""
    error_str = str(error).lower() if error else ""

    suggestions = [
        "Configure AWS credentials: aws configure",
        "Or set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables",
        "For SSO profiles, run 'aws sso login' and retry",
    ]

    if profile:
        suggestions.insert(0, f"Verify the profile '{profile}' exists in ~/.aws/config or ~/.aws/credentials")

    if "expired" in error_str or "token" in error_str:
        suggestions.insert(0, "Refresh expired session credentials")

    details: Dict[str, Any] = {"profile": profile or "(default chain)"}
    if error is not None:
        details["error_type"] = type(error).__name__
        details["error_message"] = str(error)

    return ActionableError(
        message="Unable to load AWS credentials",
        category=ErrorCategory.AUTHENTICATION,
        suggestions=suggestions,
        details=details,
    )


def create_config_error(field: str, value: Any, reason: str) -> ActionableError:
    """Create actionable error for configuration validation failures"""
    suggestions = [
        f"Check the '{field}' value in config.yaml",
        "Verify the value matches the expected format",
        "Check config-example.yaml for the correct format",
    ]

    if "region" in field.lower():
        suggestions.insert(1, "Regions look like 'us-east-1' (AMI_REGIONS takes a comma separated list)")
    elif "level" in field.lower():
        suggestions.insert(1, "Use one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

    return ActionableError(
        message=f"Configuration error: Invalid value for '{field}'",
        category=ErrorCategory.CONFIGURATION,
        suggestions=suggestions,
        details={
            "field": field,
            "value": value,
            "reason": reason
        }
    )
