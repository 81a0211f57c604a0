"""Resolve package and mapping inputs into an ordered list of upload targets."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from hockeydeploy.config import LIST_DELIMITER, StepConfig, expand_path, split_path_list
from hockeydeploy.errors import ConfigurationError
from hockeydeploy.models.upload import UploadTarget


@dataclass(frozen=True)
class MergedPaths:
    """Single package/mapping inputs merged into the package/mapping lists."""

    package: str = ""
    packages: tuple[str, ...] = ()
    mapping: str = ""
    mappings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ToggledPaths:
    """An explicit switch selects either the single inputs or the lists."""

    use_list: bool
    package: str = ""
    packages: tuple[str, ...] = ()
    mapping: str = ""
    mappings: tuple[str, ...] = ()


@dataclass(frozen=True)
class DelimitedPaths:
    """Several packages in one pipe-delimited field, sharing one mapping file."""

    packages: str
    mapping: str = ""


PathSource = MergedPaths | ToggledPaths | DelimitedPaths


@dataclass
class Reconciliation:
    targets: list[UploadTarget] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def select_path_source(config: StepConfig) -> PathSource:
    """Pick the path source variant from the inputs that were actually supplied."""
    if config.use_apk_path_list is not None:
        return ToggledPaths(
            use_list=config.use_apk_path_list,
            package=config.apk_path,
            packages=tuple(config.apk_path_list),
            mapping=config.mapping_path,
            mappings=tuple(config.mapping_path_list),
        )

    if (
        LIST_DELIMITER in config.apk_path
        and not config.apk_path_list
        and not config.mapping_path_list
    ):
        return DelimitedPaths(packages=config.apk_path, mapping=config.mapping_path)

    return MergedPaths(
        package=config.apk_path,
        packages=tuple(config.apk_path_list),
        mapping=config.mapping_path,
        mappings=tuple(config.mapping_path_list),
    )


def align_mappings(
    packages: list[str], mappings: list[str], warnings: list[str]
) -> list[str]:
    """Pad or truncate the mapping list to the length of the package list."""
    if len(mappings) < len(packages):
        return mappings + [""] * (len(packages) - len(mappings))

    if len(mappings) > len(packages):
        ignored = mappings[len(packages) :]
        warnings.append(
            f"More mapping paths than packages, ignoring: {LIST_DELIMITER.join(ignored)}"
        )
        return mappings[: len(packages)]

    return mappings


def merge_paths(
    package: str,
    packages: list[str],
    mapping: str,
    mappings: list[str],
) -> tuple[list[str], list[str], list[str]]:
    """
    Merge the single package/mapping inputs into the parallel lists.

    Returns:
        Tuple of (packages, mappings, warnings), both lists of equal length
    """
    warnings: list[str] = []
    packages = list(packages)
    mappings = align_mappings(packages, list(mappings), warnings)

    if package and package not in packages:
        packages.append(package)
        mappings.append(mapping)
    elif package and mapping:
        idx = packages.index(package)
        if not mappings[idx]:
            mappings[idx] = mapping
        elif mappings[idx] != mapping:
            warnings.append(
                f"Mapping for {package} given twice: keeping {mappings[idx]}, "
                f"ignoring {mapping}"
            )

    return packages, mappings, warnings


def pair_targets(packages: list[str], mappings: list[str]) -> list[UploadTarget]:
    """Zip packages with mappings by position; missing mappings are empty."""
    return [
        UploadTarget(
            package_path=package,
            mapping_path=mappings[idx] if idx < len(mappings) else "",
        )
        for idx, package in enumerate(packages)
    ]


def reconcile(source: PathSource) -> Reconciliation:
    """Produce the ordered upload targets for a path source."""
    if isinstance(source, DelimitedPaths):
        packages = [expand_path(package) for package in split_path_list(source.packages)]
        return Reconciliation(
            targets=[UploadTarget(package, source.mapping) for package in packages]
        )

    if isinstance(source, ToggledPaths):
        if not source.use_list:
            packages = [source.package] if source.package else []
            return Reconciliation(targets=pair_targets(packages, [source.mapping]))

        warnings: list[str] = []
        packages = list(source.packages)
        mappings = align_mappings(packages, list(source.mappings), warnings)
        return Reconciliation(targets=pair_targets(packages, mappings), warnings=warnings)

    packages, mappings, warnings = merge_paths(
        source.package, list(source.packages), source.mapping, list(source.mappings)
    )
    return Reconciliation(targets=pair_targets(packages, mappings), warnings=warnings)


def validate_targets(targets: list[UploadTarget]):
    """Raise ConfigurationError unless every target points at existing files."""
    if not targets:
        raise ConfigurationError("No package path specified")

    for target in targets:
        if not target.package_path:
            raise ConfigurationError("Empty package path in package list")
        if not os.path.exists(target.package_path):
            raise ConfigurationError(f"Package does not exist at: {target.package_path}")
        if target.mapping_path and not os.path.exists(target.mapping_path):
            raise ConfigurationError(f"Mapping file does not exist at: {target.mapping_path}")


def resolve_targets(config: StepConfig) -> Reconciliation:
    """Reconcile the configured paths and validate the resulting targets."""
    reconciliation = reconcile(select_path_source(config))
    validate_targets(reconciliation.targets)
    return reconciliation
