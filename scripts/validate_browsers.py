#!/usr/bin/env python3
"""
Compat Data Validation - Browser Presence Linter

Validates that the support tables of compat data files list only known
browsers, only browsers displayed for the file's category, and every
browser required for that category.

The category of a file is the first directory below the data root
(api/, css/, javascript/, webextensions/, ...). Files directly in the
root have no category.

Usage:
    uv run python scripts/validate_browsers.py
    uv run python scripts/validate_browsers.py api/ css/properties/color.json
    uv run python scripts/validate_browsers.py --root path/to/data --verbose
    uv run python scripts/validate_browsers.py --json

Configuration:
    COMPAT_DATA_ROOT      default for --root (falls back to the current dir)
    <root>/.compat-lint.yaml
        browsers: path/to/browsers   # relative to the config file
        exclude: [dir, ...]          # extra directory names to skip

Exit codes:
    0 - All checks passed
    1 - CRITICAL issues found (unknown browsers, unreadable files) or setup error
    2 - MAJOR issues found (invalid or missing browsers)
    3 - MINOR issues found
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from compat_browsers import (
    BrowserDescriptor,
    BrowserType,
    FeatureNode,
    Issue,
    validate_browsers_presence,
)
from compat_validation_common import SKIP_DIRS, SKIP_FILES, ValidationReport, print_json, print_results

# =============================================================================
# Constants
# =============================================================================

ROOT_ENV_VAR = "COMPAT_DATA_ROOT"
CONFIG_FILENAME = ".compat-lint.yaml"
DEFAULT_BROWSERS_DIR = "browsers"
KNOWN_CONFIG_FIELDS = {"browsers", "exclude"}

REPORT_TITLE = "Browsers"


class RegistryError(ValueError):
    """Raised when the browser registry cannot be loaded."""


class ConfigError(ValueError):
    """Raised when the linter configuration file is unusable."""


# =============================================================================
# Browser Registry
# =============================================================================


def parse_registry(data: Any, source: str = "<registry>") -> dict[str, BrowserDescriptor]:
    """Build registry entries from one parsed {"browsers": {...}} document."""
    if not isinstance(data, dict) or not isinstance(data.get("browsers"), dict):
        raise RegistryError(f"{source}: expected an object with a 'browsers' object")

    registry: dict[str, BrowserDescriptor] = {}
    for name, entry in data["browsers"].items():
        if not isinstance(entry, dict):
            raise RegistryError(f"{source}: browser '{name}' must be an object")
        try:
            browser_type = BrowserType(entry.get("type"))
        except ValueError:
            raise RegistryError(f"{source}: browser '{name}' has unknown type {entry.get('type')!r}") from None
        registry[name] = BrowserDescriptor(
            type=browser_type,
            accepts_webextensions=bool(entry.get("accepts_webextensions", False)),
        )
    return registry


def load_registry(path: Path) -> dict[str, BrowserDescriptor]:
    """Load the browser registry from a directory of JSON files or a single file."""
    if path.is_dir():
        files = sorted(path.glob("*.json"))
        if not files:
            raise RegistryError(f"No browser files (*.json) found in {path}")
    elif path.is_file():
        files = [path]
    else:
        raise RegistryError(f"Browser registry not found: {path}")

    registry: dict[str, BrowserDescriptor] = {}
    for browser_file in files:
        try:
            data = json.loads(browser_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise RegistryError(f"Cannot read {browser_file}: {e}") from e
        for name, descriptor in parse_registry(data, str(browser_file)).items():
            if name in registry:
                raise RegistryError(f"{browser_file}: browser '{name}' is defined more than once")
            registry[name] = descriptor
    return registry


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class LintConfig:
    """Settings read from the YAML config file."""

    browsers: Path | None = None
    exclude: set[str] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)


def load_config(config_path: Path) -> LintConfig:
    """Load a YAML linter config. An empty file yields the defaults."""
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e

    config = LintConfig()
    if data is None:
        return config
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a YAML mapping, got {type(data).__name__}")

    for key in data:
        if key not in KNOWN_CONFIG_FIELDS:
            config.warnings.append(f"Unknown config field '{key}' in {config_path.name} (ignored)")

    if "browsers" in data:
        if not isinstance(data["browsers"], str):
            raise ConfigError("'browsers' must be a path string")
        config.browsers = (config_path.parent / data["browsers"]).resolve()

    exclude = data.get("exclude", [])
    if not isinstance(exclude, list) or not all(isinstance(name, str) for name in exclude):
        raise ConfigError("'exclude' must be a list of directory names")
    config.exclude = set(exclude)

    return config


# =============================================================================
# File Discovery
# =============================================================================


def category_for_file(filename: Path, root: Path) -> str | None:
    """Return the first directory of filename below root, or None at the root itself."""
    parts = Path(os.path.relpath(filename, root)).parts
    if len(parts) > 1:
        return parts[0]
    return None


def iter_data_files(paths: list[Path], exclude: set[str] | None = None) -> list[Path]:
    """Expand files and directories into the sorted list of JSON data files.

    Overlapping arguments (a directory and one of its subdirectories, or the
    same file twice) yield each file once, at its first position.
    """
    skip = SKIP_DIRS | (exclude or set())
    files: dict[Path, Path] = {}
    for path in paths:
        if path.is_file():
            files.setdefault(path.resolve(), path)
            continue
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames[:] = sorted(d for d in dirnames if d not in skip and not d.startswith("."))
            for name in sorted(filenames):
                if name.endswith(".json") and name not in SKIP_FILES:
                    filename = Path(dirpath) / name
                    files.setdefault(filename.resolve(), filename)
    return list(files.values())


def display_name(filename: Path, root: Path) -> str:
    try:
        return filename.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return str(filename)


# =============================================================================
# Validation Functions
# =============================================================================


@dataclass
class BrowsersReport(ValidationReport):
    """Report for one data file. Every issue is tagged with the file name."""

    file: str = ""

    def add_issue(self, issue: Issue, file: str | None = None) -> None:
        super().add_issue(issue, file or self.file)


def load_feature_tree(filename: Path) -> FeatureNode:
    """Parse one compat data file into a feature tree."""
    data = json.loads(filename.read_text(encoding="utf-8"))
    return FeatureNode.from_data(data)


def validate_file(
    filename: Path,
    root: Path,
    registry: dict[str, BrowserDescriptor],
) -> BrowsersReport:
    """Validate one data file and return its report."""
    report = BrowsersReport(file=display_name(filename, root))

    try:
        tree = load_feature_tree(filename)
    except (OSError, ValueError) as e:
        report.critical(f"Cannot load data file: {e}", report.file)
        return report

    category = category_for_file(filename.resolve(), root.resolve())
    validate_browsers_presence(tree, category, registry, report)

    if not report.has_issues:
        report.passed(f"Browsers valid for {category or 'uncategorized'} data", report.file)
    return report


def validate_paths(
    paths: list[Path],
    root: Path,
    registry: dict[str, BrowserDescriptor],
    exclude: set[str] | None = None,
) -> ValidationReport:
    """Validate every data file under the given paths, one report per file."""
    report = ValidationReport()
    files = iter_data_files(paths, exclude)
    report.info(f"Found {len(files)} data file(s)")

    for filename in files:
        report.merge(validate_file(filename, root, registry))

    return report


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate browsers listed in compat data support tables")
    parser.add_argument("paths", nargs="*", help="Data files or directories (default: the data root)")
    parser.add_argument("--root", help=f"Data root used to derive categories (default: ${ROOT_ENV_VAR} or cwd)")
    parser.add_argument("--browsers", help="Browser registry directory or file (default: <root>/browsers)")
    parser.add_argument("--config", help=f"YAML config file (default: <root>/{CONFIG_FILENAME} if present)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show all results")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    args = parser.parse_args(argv)

    root = Path(args.root or os.environ.get(ROOT_ENV_VAR) or ".").resolve()
    if not root.is_dir():
        print(f"Error: {root} is not a directory", file=sys.stderr)
        return 1

    config = LintConfig()
    config_path = Path(args.config) if args.config else root / CONFIG_FILENAME
    if args.config or config_path.is_file():
        try:
            config = load_config(config_path)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if args.browsers:
        browsers_path = Path(args.browsers).resolve()
    else:
        browsers_path = config.browsers or root / DEFAULT_BROWSERS_DIR
    try:
        registry = load_registry(browsers_path)
    except RegistryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    paths = [Path(p) for p in args.paths] or [root]
    missing = [p for p in paths if not p.exists()]
    if missing:
        for p in missing:
            print(f"Error: {p} does not exist", file=sys.stderr)
        return 1

    report = ValidationReport()
    for warning in config.warnings:
        report.warning(warning)
    report.info(f"Loaded {len(registry)} browser(s) from {browsers_path}")
    report.merge(validate_paths(paths, root, registry, config.exclude))

    if args.json:
        print_json(report)
    else:
        print_results(report, REPORT_TITLE, args.verbose)

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
