"""Rule documents: schema and loading."""

from .loader import RulePackageLoader, discover_package_files, read_document
from .schema import (
    Citation,
    DocumentRequirement,
    NextStep,
    RuleAuthor,
    RuleChange,
    RuleDefinition,
    RulePackage,
    RulePackageMetadata,
    RuleType,
    RuleVersion,
    TestCase,
    compare_versions,
    format_version,
    increment_version,
    is_newer_version,
    parse_version,
)

__all__ = [
    # Loader
    "RulePackageLoader",
    "discover_package_files",
    "read_document",
    # Schema
    "Citation",
    "DocumentRequirement",
    "NextStep",
    "RuleAuthor",
    "RuleChange",
    "RuleDefinition",
    "RulePackage",
    "RulePackageMetadata",
    "RuleType",
    "RuleVersion",
    "TestCase",
    # Versioning
    "compare_versions",
    "format_version",
    "increment_version",
    "is_newer_version",
    "parse_version",
]
