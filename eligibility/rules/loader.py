"""Rule package loader.

Reads JSON (and YAML) rule package files. Raw documents are kept alongside
parsed packages so a schema-invalid file can still be validated structurally.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from eligibility.core.exceptions import RulePackageLoadError

from .schema import RuleDefinition, RulePackage

logger = logging.getLogger(__name__)

PACKAGE_SUFFIXES = (".json", ".yaml", ".yml")


def read_document(path: str | Path) -> Any:
    """Decode one package file without schema validation.

    Raises:
        RulePackageLoadError: unreadable file or invalid JSON/YAML.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RulePackageLoadError(str(path), e.strerror or str(e)) from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RulePackageLoadError(str(path), f"invalid {path.suffix.lstrip('.').upper()}: {e}") from e


def discover_package_files(directory: str | Path) -> list[Path]:
    """Package files under ``directory``, recursively, in sorted order."""
    directory = Path(directory)
    if not directory.exists():
        return []
    return sorted(
        p for p in directory.rglob("*")
        if p.is_file() and p.suffix.lower() in PACKAGE_SUFFIXES and not p.name.startswith(".")
    )


class RulePackageLoader:
    """Loads and indexes rule packages from files."""

    def __init__(self, rules_dir: str | Path | None = None):
        self.rules_dir = Path(rules_dir) if rules_dir else None
        self._packages: dict[str, RulePackage] = {}
        self._sources: dict[str, Path] = {}

    def load_file(self, path: str | Path) -> RulePackage:
        """Load and validate one package file.

        Raises:
            RulePackageLoadError: unreadable or undecodable file.
            pydantic.ValidationError: document does not match the schema.
        """
        path = Path(path)
        package = RulePackage.model_validate(read_document(path))
        self._packages[package.metadata.id] = package
        self._sources[package.metadata.id] = path
        logger.debug("Loaded package %s (%d rules) from %s", package.metadata.id, len(package.rules), path)
        return package

    def load_directory(self, directory: str | Path | None = None) -> list[RulePackage]:
        """Load every package file in a directory, skipping files that fail."""
        directory = Path(directory) if directory else self.rules_dir
        if directory is None:
            raise ValueError("No rules directory specified")

        packages = []
        for path in discover_package_files(directory):
            try:
                packages.append(self.load_file(path))
            except (RulePackageLoadError, ValidationError) as e:
                logger.warning("Failed to load %s: %s", path, e)
        return packages

    def get_package(self, package_id: str) -> RulePackage | None:
        return self._packages.get(package_id)

    def get_all_packages(self) -> list[RulePackage]:
        return list(self._packages.values())

    def source_of(self, package_id: str) -> Path | None:
        return self._sources.get(package_id)

    def get_rule(self, rule_id: str) -> RuleDefinition | None:
        """First loaded rule with this id across all packages."""
        for package in self._packages.values():
            rule = package.get_rule(rule_id)
            if rule is not None:
                return rule
        return None

    def get_all_rules(self) -> list[RuleDefinition]:
        return [rule for package in self._packages.values() for rule in package.rules]

    def get_applicable_rules(
        self,
        program_id: str | None = None,
        on: datetime | None = None,
    ) -> list[RuleDefinition]:
        """Active, non-draft rules in effect on a date, highest priority first."""
        when = on or datetime.now()
        rules = [
            rule for rule in self.get_all_rules()
            if rule.active
            and not rule.draft
            and (program_id is None or rule.program_id == program_id)
            and rule.is_effective(when)
        ]
        return sorted(rules, key=lambda rule: -(rule.priority or 0))

    def save_package(self, package: RulePackage, path: str | Path | None = None) -> Path:
        """Write a package as camelCase JSON.

        Args:
            package: The package to save.
            path: Optional path. If not provided, saves to rules_dir/{id}.json
        """
        if path is None:
            if self.rules_dir is None:
                raise ValueError("No rules directory specified and no path provided")
            path = self.rules_dir / f"{package.metadata.id}.json"
        else:
            path = Path(path)

        data = package.model_dump(mode="json", by_alias=True, exclude_none=True)
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")

        self._packages[package.metadata.id] = package
        self._sources[package.metadata.id] = path
        return path
