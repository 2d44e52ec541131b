"""Core domain types and logic."""

from .config import ConfigError, ProjectConfig, load_config
from .context import ExecutionContext, report_error
from .errors import CraftError, ErrorCode, describe
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ConfigError",
    "ProjectConfig",
    "load_config",
    # context
    "ExecutionContext",
    "report_error",
    # errors
    "CraftError",
    "ErrorCode",
    "describe",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
