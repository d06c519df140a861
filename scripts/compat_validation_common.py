#!/usr/bin/env python3
"""
Compat Data Validation - Common Module

Shared reporting infrastructure for the compatibility data linters.
This module contains:
- Type definitions (Level, ValidationResult, ValidationReport)
- Exit codes and directory skip lists
- Output helpers (colors, result formatting, JSON output)

Linters record their findings in a ValidationReport and leave rendering
to the helpers at the bottom of this module.
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Literal

# =============================================================================
# Type Definitions
# =============================================================================

# Validation result severity levels
# Hierarchy: CRITICAL > MAJOR > MINOR > WARNING > INFO > PASSED
# - CRITICAL/MAJOR/MINOR: fail the file (non-zero exit code)
# - WARNING: never blocks, always reported
# - INFO/PASSED: shown in verbose mode only
Level = Literal["CRITICAL", "MAJOR", "MINOR", "WARNING", "INFO", "PASSED"]

ERROR_LEVELS = ("CRITICAL", "MAJOR", "MINOR")
ALL_LEVELS: tuple[Level, ...] = ("CRITICAL", "MAJOR", "MINOR", "WARNING", "INFO", "PASSED")

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No issues (or only WARNING/INFO/PASSED)
EXIT_CRITICAL = 1  # CRITICAL issues found, also used for setup errors
EXIT_MAJOR = 2  # MAJOR issues found
EXIT_MINOR = 3  # MINOR issues found

# =============================================================================
# Issue Severities
# =============================================================================

# Severity for each structured issue kind reported by the linters
ISSUE_LEVELS: dict[str, Level] = {
    "unknown_browser": "CRITICAL",  # not in the browser registry at all
    "invalid_browser": "MAJOR",
    "missing_browser": "MAJOR",
}

# Message text for each issue kind; {where} is the feature path
ISSUE_MESSAGES: dict[str, str] = {
    "unknown_browser": "{where} has the following browsers, which are not defined in the browser registry: {names}",
    "invalid_browser": "{where} has the following browsers, which are invalid for {category} compat data: {names}",
    "missing_browser": (
        "{where} is missing the following browsers, which are required for {category} compat data: {names}"
    ),
}


def format_issue_message(kind: str, path: str, browsers: tuple[str, ...], category: str | None = None) -> str:
    """Render a structured issue as one line of text."""
    return ISSUE_MESSAGES[kind].format(
        where=path or "(root)",
        names=", ".join(browsers),
        category=category or "uncategorized",
    )


# =============================================================================
# Directory Scanning
# =============================================================================

# Directories never walked when collecting data files
SKIP_DIRS = {
    ".git",
    ".github",
    "__pycache__",
    ".venv",
    "node_modules",
    ".pytest_cache",
    ".ruff_cache",
    ".mypy_cache",
    "build",
    "dist",
    "browsers",  # registry, not feature data
}

# Tooling files that live beside the data but are not feature documents
SKIP_FILES = {
    "package.json",
    "package-lock.json",
    "tsconfig.json",
}

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ValidationResult:
    """Single validation check result.

    Attributes:
        level: Severity level (CRITICAL, MAJOR, MINOR, WARNING, INFO, PASSED)
        message: Human-readable description of the result
        file: Optional data file the result belongs to
        path: Optional dotted feature path inside the file
        kind: Optional machine-readable issue kind
    """

    level: Level
    message: str
    file: str | None = None
    path: str | None = None
    kind: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, str | None] = {"level": self.level, "message": self.message}
        if self.file is not None:
            result["file"] = self.file
        if self.path is not None:
            result["path"] = self.path
        if self.kind is not None:
            result["kind"] = self.kind
        return result


@dataclass
class ValidationReport:
    """Validation report collecting every result before anything is printed.

    This is the base class the linters use (or extend). Results are kept in
    the order they were added, so a tree walk produces them in pre-order.
    """

    results: list[ValidationResult] = field(default_factory=list)

    def add(
        self,
        level: Level,
        message: str,
        file: str | None = None,
        path: str | None = None,
        kind: str | None = None,
    ) -> None:
        """Add a validation result."""
        self.results.append(ValidationResult(level, message, file, path, kind))

    def add_issue(self, issue: Any, file: str | None = None) -> None:
        """Record a structured issue (anything with kind, path, browsers and category)."""
        kind = issue.kind.value
        message = format_issue_message(kind, issue.path, issue.browsers, issue.category)
        self.add(ISSUE_LEVELS.get(kind, "MAJOR"), message, file, issue.path, kind)

    def passed(self, message: str, file: str | None = None) -> None:
        """Add a passed check."""
        self.add("PASSED", message, file)

    def info(self, message: str, file: str | None = None) -> None:
        """Add an info message."""
        self.add("INFO", message, file)

    def warning(self, message: str, file: str | None = None) -> None:
        """Add a warning. Always reported, never blocks validation."""
        self.add("WARNING", message, file)

    def minor(self, message: str, file: str | None = None, path: str | None = None) -> None:
        """Add a minor issue."""
        self.add("MINOR", message, file, path)

    def major(self, message: str, file: str | None = None, path: str | None = None) -> None:
        """Add a major issue."""
        self.add("MAJOR", message, file, path)

    def critical(self, message: str, file: str | None = None, path: str | None = None) -> None:
        """Add a critical issue."""
        self.add("CRITICAL", message, file, path)

    @property
    def has_critical(self) -> bool:
        """Check if any CRITICAL issues exist."""
        return any(r.level == "CRITICAL" for r in self.results)

    @property
    def has_major(self) -> bool:
        """Check if any MAJOR issues exist."""
        return any(r.level == "MAJOR" for r in self.results)

    @property
    def has_minor(self) -> bool:
        """Check if any MINOR issues exist."""
        return any(r.level == "MINOR" for r in self.results)

    @property
    def has_issues(self) -> bool:
        """True if anything was recorded that fails the file."""
        return any(r.level in ERROR_LEVELS for r in self.results)

    @property
    def exit_code(self) -> int:
        """Get appropriate exit code based on highest severity issue.

        WARNING, INFO and PASSED never affect the exit code.
        """
        if self.has_critical:
            return EXIT_CRITICAL
        if self.has_major:
            return EXIT_MAJOR
        if self.has_minor:
            return EXIT_MINOR
        return EXIT_OK

    def count_by_level(self) -> dict[str, int]:
        """Get count of results by level."""
        counts: dict[str, int] = {level: 0 for level in ALL_LEVELS}
        for r in self.results:
            counts[r.level] += 1
        return counts

    def get_all_errors(self) -> list[ValidationResult]:
        """Get all error results (CRITICAL, MAJOR, MINOR)."""
        return [r for r in self.results if r.level in ERROR_LEVELS]

    def get_results_by_file(self) -> dict[str | None, list[ValidationResult]]:
        """Group results by data file, keeping first-seen file order."""
        by_file: dict[str | None, list[ValidationResult]] = {}
        for r in self.results:
            by_file.setdefault(r.file, []).append(r)
        return by_file

    def merge(self, other: ValidationReport) -> None:
        """Merge results from another report into this one."""
        self.results.extend(other.results)

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "exit_code": self.exit_code,
            "counts": self.count_by_level(),
            "results": [r.to_dict() for r in self.results],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert report to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "CRITICAL": "\033[91m",  # Red
    "MAJOR": "\033[93m",  # Yellow
    "MINOR": "\033[94m",  # Blue
    "WARNING": "\033[95m",  # Magenta
    "INFO": "\033[90m",  # Gray
    "PASSED": "\033[92m",  # Green
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
}


def color_enabled() -> bool:
    """Colors are used only on a terminal and only when NO_COLOR is unset."""
    if os.environ.get("NO_COLOR"):
        return False
    return sys.stdout.isatty()


def colorize(text: str, level: str) -> str:
    """Apply color to text based on level."""
    if not color_enabled():
        return text
    return f"{COLORS.get(level, '')}{text}{COLORS['RESET']}"


def format_result(result: ValidationResult) -> str:
    """Format a single validation result for terminal output."""
    return f"{colorize(f'[{result.level}]', result.level)} {result.message}"


def print_results(report: ValidationReport, title: str, verbose: bool = False) -> None:
    """Print validation results grouped by file."""
    counts = report.count_by_level()

    print("\n" + "=" * 60)
    print(colorize(title, "BOLD"))
    print("=" * 60)

    for file, results in report.get_results_by_file().items():
        shown = [r for r in results if verbose or r.level not in ("INFO", "PASSED")]
        if not shown:
            continue
        print(f"\n{file or '(run)'}")
        for result in shown:
            print(f"  {format_result(result)}")

    print("\nSummary:")
    for level in ALL_LEVELS:
        if level in ("INFO", "PASSED") and not verbose:
            continue
        label = f"{level}:"
        print(f"  {colorize(f'{label:<10}{counts[level]}', level)}")

    print("\n" + "-" * 60)
    if report.exit_code == EXIT_OK:
        print(colorize("✓ All browser checks passed", "PASSED"))
    elif report.exit_code == EXIT_CRITICAL:
        print(colorize("✗ CRITICAL issues found", "CRITICAL"))
    elif report.exit_code == EXIT_MAJOR:
        print(colorize("✗ MAJOR issues found", "MAJOR"))
    else:
        print(colorize("! MINOR issues found", "MINOR"))
    print()


def print_json(report: ValidationReport) -> None:
    """Print validation results as JSON."""
    print(report.to_json())
