#!/usr/bin/env python3
"""
Compat Data Validation - Browser Presence Checks

Checks that every support table in a feature tree names only browsers
that exist in the browser registry, only browsers that are displayed for
the file's category, and every browser the category requires.

This module holds the data model and the checks only. Loading files,
resolving categories and printing results live in validate_browsers.py.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

# Serialized key holding a feature's own compat block
COMPAT_KEY = "__compat"

# Categories whose data may list server runtimes
SERVER_CATEGORIES = {"api", "javascript"}

WEBEXTENSIONS_CATEGORY = "webextensions"


class MalformedDocumentError(ValueError):
    """Raised when a feature document does not have the feature tree shape."""


# =============================================================================
# Data Model
# =============================================================================


class BrowserType(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    XR = "xr"
    SERVER = "server"
    OTHER = "other"


DISPLAYED_TYPES = {BrowserType.DESKTOP, BrowserType.MOBILE, BrowserType.XR}


@dataclass(frozen=True)
class BrowserDescriptor:
    """One browser registry entry, reduced to what classification needs."""

    type: BrowserType
    accepts_webextensions: bool = False


BrowserRegistry = Mapping[str, BrowserDescriptor]


@dataclass(frozen=True)
class BrowserSetPair:
    """Browsers a category may list (displayable) and must list (required)."""

    displayable: frozenset[str]
    required: frozenset[str]


@dataclass
class FeatureNode:
    """A feature in the compat tree.

    Attributes:
        support: Support table of this feature's compat block, or None when
            the feature has no compat block (or one without a support table)
        children: Sub-features keyed by name, in document order
    """

    support: dict[str, Any] | None = None
    children: dict[str, FeatureNode] = field(default_factory=dict)

    @classmethod
    def from_data(cls, data: Any, path: str = "") -> FeatureNode:
        """Build a feature tree from a parsed JSON document."""
        if not isinstance(data, dict):
            raise MalformedDocumentError(f"{path or '(root)'} must be an object, got {type(data).__name__}")

        support = None
        compat = data.get(COMPAT_KEY)
        if compat is not None:
            if not isinstance(compat, dict):
                raise MalformedDocumentError(f"{path or '(root)'}.{COMPAT_KEY} must be an object")
            support = compat.get("support")
            if support is not None and not isinstance(support, dict):
                raise MalformedDocumentError(f"{path or '(root)'}.{COMPAT_KEY}.support must be an object")

        children = {
            key: cls.from_data(value, join_path(path, key)) for key, value in data.items() if key != COMPAT_KEY
        }
        return cls(support=support, children=children)


class IssueKind(str, Enum):
    UNKNOWN_BROWSER = "unknown_browser"
    INVALID_BROWSER = "invalid_browser"
    MISSING_BROWSER = "missing_browser"


@dataclass(frozen=True)
class Issue:
    """A browser presence finding at one feature path.

    Rendering the finding as text is left to the reporter.
    """

    kind: IssueKind
    path: str
    browsers: tuple[str, ...]
    category: str | None = None


class IssueReporter(Protocol):
    def add_issue(self, issue: Issue) -> None: ...


def join_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


# =============================================================================
# Category Classification
# =============================================================================


def classify_browsers(category: str | None, registry: BrowserRegistry) -> BrowserSetPair:
    """Derive the displayable and required browsers for a category.

    Both sets go through the same web extension gate, so required is always
    a subset of displayable.
    """
    displayed_types = set(DISPLAYED_TYPES)
    if category in SERVER_CATEGORIES:
        displayed_types.add(BrowserType.SERVER)

    def passes_gate(browser: BrowserDescriptor) -> bool:
        return category != WEBEXTENSIONS_CATEGORY or browser.accepts_webextensions

    displayable = frozenset(
        name for name, browser in registry.items() if browser.type in displayed_types and passes_gate(browser)
    )
    required = frozenset(
        name for name, browser in registry.items() if browser.type == BrowserType.DESKTOP and passes_gate(browser)
    )
    return BrowserSetPair(displayable=displayable, required=required)


# =============================================================================
# Tree Validation
# =============================================================================


def check_support_table(
    support: Mapping[str, Any],
    sets: BrowserSetPair,
    registry: BrowserRegistry,
    category: str | None = None,
    path: str = "",
) -> list[Issue]:
    """Run the three browser checks on one support table.

    A browser missing from the registry is also missing from the displayable
    set, so it is reported by both the unknown and the invalid check.
    """
    issues: list[Issue] = []

    unknown = tuple(name for name in support if name not in registry)
    if unknown:
        issues.append(Issue(IssueKind.UNKNOWN_BROWSER, path, unknown, category))

    invalid = tuple(name for name in support if name not in sets.displayable)
    if invalid:
        issues.append(Issue(IssueKind.INVALID_BROWSER, path, invalid, category))

    # Registry order keeps the listing stable between runs
    missing = tuple(name for name in registry if name in sets.required and name not in support)
    if missing:
        issues.append(Issue(IssueKind.MISSING_BROWSER, path, missing, category))

    return issues


def validate_tree(
    node: FeatureNode,
    sets: BrowserSetPair,
    registry: BrowserRegistry,
    reporter: IssueReporter,
    category: str | None = None,
    path: str = "",
) -> None:
    """Check a feature and all of its descendants, pre-order.

    The tree must be acyclic; there is no depth limit.
    """
    if node.support is not None:
        for issue in check_support_table(node.support, sets, registry, category, path):
            reporter.add_issue(issue)

    for key, child in node.children.items():
        validate_tree(child, sets, registry, reporter, category, join_path(path, key))


def validate_browsers_presence(
    tree: FeatureNode,
    category: str | None,
    registry: BrowserRegistry,
    reporter: IssueReporter,
) -> None:
    """Check a whole feature file. The browser sets are computed once per call."""
    sets = classify_browsers(category, registry)
    validate_tree(tree, sets, registry, reporter, category)
