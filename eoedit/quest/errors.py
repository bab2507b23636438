"""Errors and warnings raised while reading quest scripts.

Structural problems stop a parse and surface as exceptions. Everything else
(unknown symbols, dangling gotos, duplicate descriptions) is reported as a
warning record appended to a caller-supplied list and logged.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


class QuestError(Exception):
    """Base class for quest tooling errors."""
    pass


class MalformedQuestError(QuestError):
    """The text is not a valid quest script."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.line = line
        self.column = column
        self.reason = message
        if line:
            message = f"line {line}, column {column}: {message}"
        super().__init__(message)


class ConfigLoadError(QuestError):
    """A schema document could not be read."""
    pass


class TemplateParseError(QuestError):
    """A state template file could not be parsed."""

    def __init__(self, message: str, line: int = 0):
        self.line = line
        if line:
            message = f"line {line}: {message}"
        super().__init__(message)


@dataclass
class QuestWarning:
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line:
            return f"line {self.line}: {self.message}"
        return self.message


@dataclass
class UnknownSymbolWarning(QuestWarning):
    symbol: str = ""


@dataclass
class DanglingGotoWarning(QuestWarning):
    state: str = ""
    target: str = ""


@dataclass
class DuplicateDescriptionWarning(QuestWarning):
    state: str = ""


@dataclass
class EmptyGotoWarning(QuestWarning):
    state: str = ""
