"""
Custom exceptions for RobotCell.

All RobotCell exceptions inherit from RobotCellError for easy catching.
Only fatal problems are raised; kinematic and code generation issues that
still allow a partial program are collected as errors and warnings instead.
"""

from typing import Any


class RobotCellError(Exception):
    """Base exception for all RobotCell errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(RobotCellError):
    """Raised when configuration or a hardware description is invalid or missing."""

    pass


class MechanismDefinitionError(ConfigurationError):
    """Raised when a mechanism or tool definition is malformed."""

    pass


class IOIndexError(ConfigurationError):
    """Raised when a command addresses an IO channel outside the system's IO table."""

    def __init__(
        self,
        message: str,
        index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.index = index


class CommandError(RobotCellError):
    """Raised when a command is built inconsistently."""

    pass


class KinematicsError(RobotCellError):
    """Raised when a kinematic solve is requested with invalid arguments."""

    pass


class ProgramError(RobotCellError):
    """Raised when a compiled program cannot be used as requested."""

    pass


class PostProcessorError(RobotCellError):
    """Raised when no post processor is able to emit code."""

    def __init__(
        self,
        message: str,
        format_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.format_name = format_name
