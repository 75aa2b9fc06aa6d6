"""Typed YAML migration plans.

A plan names the export to import, per-collection identifier chains,
date fields and purge flags, and the derived-field reconciliation tasks
to run after the import. One strict schema is shared by the CLI and the
SDK so both execute the same description.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, cast

from core.config import parse_batch_size
from core.constants import DEFAULT_DATE_FIELDS, DEFAULT_ID_FIELDS, DEFAULT_TOUCH_FIELD
from core.errors import FerryConfigError, FerryDependencyError, FerryPlanError
from core.plan_fields import (
    expect_mapping,
    expect_sequence,
    optional_bool,
    optional_int,
    optional_string,
    optional_string_tuple,
    reject_unknown_keys,
    required_string,
)
from core.types import CollectionPlan

SUPPORTED_PLAN_VERSION = 1


@dataclass(frozen=True)
class PlanDefaults:
    """Default values applied to a plan run."""

    source_uri: str | None = None
    collection: str | None = None
    batch_size: int | None = None


@dataclass(frozen=True)
class ReconcileTask:
    """One derived-field reconciliation declared in a plan.

    The derived value is the list of ``source_field`` values of every
    source document whose ``link_field`` holds the target key.
    """

    target_collection: str
    source_collection: str
    link_field: str
    derived_field: str
    source_field: str
    target_key_field: str | None = None
    touch_field: str | None = DEFAULT_TOUCH_FIELD


@dataclass(frozen=True)
class MigrationPlan:
    """Validated migration plan root object."""

    version: int
    defaults: PlanDefaults
    collections: tuple[CollectionPlan, ...]
    reconcile: tuple[ReconcileTask, ...]


def load_migration_plan(
    plan_path: str,
    default_date_fields: tuple[str, ...] = DEFAULT_DATE_FIELDS,
) -> MigrationPlan:
    """Load and validate a YAML migration plan from disk.

    Args:
        plan_path: File path to the YAML plan.
        default_date_fields: Date fields for collections that declare none.

    Returns:
        Fully validated plan.

    Raises:
        FerryDependencyError: If PyYAML is unavailable.
        FerryPlanError: If the file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(plan_path)
    return parse_migration_plan(payload, default_date_fields)


def parse_migration_plan(
    payload: object,
    default_date_fields: tuple[str, ...] = DEFAULT_DATE_FIELDS,
) -> MigrationPlan:
    """Validate an already-parsed plan document."""
    root_mapping = expect_mapping(payload, "plan root")
    reject_unknown_keys(
        root_mapping, {"version", "defaults", "collections", "reconcile"}, "plan root"
    )
    version = _parse_version(root_mapping)
    defaults = _parse_defaults(root_mapping)
    collections = _parse_collections(root_mapping, default_date_fields)
    reconcile = _parse_reconcile_tasks(root_mapping)
    if not collections and not reconcile and defaults.source_uri is None:
        raise FerryPlanError(
            "Plan declares nothing to do. Add 'collections', 'reconcile', or defaults.source."
        )
    return MigrationPlan(
        version=version,
        defaults=defaults,
        collections=collections,
        reconcile=reconcile,
    )


def _load_yaml_payload(plan_path: str) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise FerryDependencyError(
            "Migration plans require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    plan_file = Path(plan_path).expanduser().resolve()
    if not plan_file.exists():
        raise FerryPlanError(
            f"Plan file does not exist at {plan_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(plan_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise FerryPlanError(
            f"Failed to read plan at {plan_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise FerryPlanError(
            f"Failed to parse YAML plan at {plan_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise FerryPlanError(f"Plan at {plan_file} is empty. Define 'version' and 'collections'.")
    return payload


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if isinstance(raw_version, bool) or not isinstance(raw_version, int):
        raise FerryPlanError("Plan field 'version' must be an integer. Set version: 1.")
    if raw_version != SUPPORTED_PLAN_VERSION:
        raise FerryPlanError(f"Unsupported plan version {raw_version}. Use version: 1.")
    return raw_version


def _parse_defaults(root_mapping: Mapping[str, object]) -> PlanDefaults:
    raw_defaults = root_mapping.get("defaults")
    if raw_defaults is None:
        return PlanDefaults()
    context = "plan defaults"
    defaults_mapping = expect_mapping(raw_defaults, context)
    reject_unknown_keys(defaults_mapping, {"source", "collection", "batch_size"}, context)
    raw_batch_size = optional_int(defaults_mapping, "batch_size", context)
    batch_size = None
    if raw_batch_size is not None:
        try:
            batch_size = parse_batch_size(raw_batch_size)
        except FerryConfigError as error:
            raise FerryPlanError(f"Invalid {context}: {error}") from error
    return PlanDefaults(
        source_uri=optional_string(defaults_mapping, "source", context),
        collection=optional_string(defaults_mapping, "collection", context),
        batch_size=batch_size,
    )


def _parse_collections(
    root_mapping: Mapping[str, object],
    default_date_fields: tuple[str, ...],
) -> tuple[CollectionPlan, ...]:
    raw_collections = root_mapping.get("collections")
    if raw_collections is None:
        return ()
    plans: list[CollectionPlan] = []
    seen_names: set[str] = set()
    for index, row in enumerate(expect_sequence(raw_collections, "plan collections")):
        plan = _parse_collection(row, index, default_date_fields)
        if plan.name in seen_names:
            raise FerryPlanError(f"Plan declares collection '{plan.name}' more than once.")
        seen_names.add(plan.name)
        plans.append(plan)
    return tuple(plans)


def _parse_collection(
    row: object,
    index: int,
    default_date_fields: tuple[str, ...],
) -> CollectionPlan:
    context = f"plan collection #{index + 1}"
    mapping = expect_mapping(row, context)
    reject_unknown_keys(mapping, {"name", "id_fields", "date_fields", "purge"}, context)
    return CollectionPlan(
        name=required_string(mapping, "name", context),
        id_fields=optional_string_tuple(mapping, "id_fields", context) or DEFAULT_ID_FIELDS,
        date_fields=optional_string_tuple(mapping, "date_fields", context) or default_date_fields,
        purge=optional_bool(mapping, "purge", context, False),
    )


def _parse_reconcile_tasks(root_mapping: Mapping[str, object]) -> tuple[ReconcileTask, ...]:
    raw_tasks = root_mapping.get("reconcile")
    if raw_tasks is None:
        return ()
    tasks: list[ReconcileTask] = []
    for index, row in enumerate(expect_sequence(raw_tasks, "plan reconcile tasks")):
        tasks.append(_parse_reconcile_task(row, index))
    return tuple(tasks)


def _parse_reconcile_task(row: object, index: int) -> ReconcileTask:
    context = f"plan reconcile task #{index + 1}"
    mapping = expect_mapping(row, context)
    reject_unknown_keys(
        mapping,
        {
            "target",
            "source",
            "link_field",
            "derived_field",
            "source_field",
            "target_key_field",
            "touch_field",
        },
        context,
    )
    touch_field = DEFAULT_TOUCH_FIELD
    if "touch_field" in mapping:
        touch_field = optional_string(mapping, "touch_field", context)
    return ReconcileTask(
        target_collection=required_string(mapping, "target", context),
        source_collection=required_string(mapping, "source", context),
        link_field=required_string(mapping, "link_field", context),
        derived_field=required_string(mapping, "derived_field", context),
        source_field=required_string(mapping, "source_field", context),
        target_key_field=optional_string(mapping, "target_key_field", context),
        touch_field=touch_field,
    )
