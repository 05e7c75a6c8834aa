"""Find and clean dependency and build directories."""

from __future__ import annotations

from .errors import (
    DeletionError,
    InvalidFilter,
    InvalidPattern,
    InvalidRuleSyntax,
    InvalidStartPath,
    ProjcleanError,
    TraversalIoError,
)
from .info import TargetInfo
from .rules import Rule, RuleSet, parse_rule
from .scanner import Scanner, scan
from .session import DeletionOutcome, DeletionReport, SelectionSession

__version__ = "0.1.0"

__all__ = [
    "DeletionError",
    "DeletionOutcome",
    "DeletionReport",
    "InvalidFilter",
    "InvalidPattern",
    "InvalidRuleSyntax",
    "InvalidStartPath",
    "ProjcleanError",
    "Rule",
    "RuleSet",
    "Scanner",
    "SelectionSession",
    "TargetInfo",
    "TraversalIoError",
    "parse_rule",
    "scan",
]
