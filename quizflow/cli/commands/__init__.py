"""CLI commands for quizflow."""

from . import (
    resolve,
    validate,
    fix,
    config_cmd,
)

__all__ = [
    "resolve",
    "validate",
    "fix",
    "config_cmd",
]
