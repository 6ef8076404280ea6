from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

import psycopg

from lab_etl.config.settings import Settings
from lab_etl.database.models import TableSpec
from lab_etl.database.repositories.entity_repository import EntityRepository
from lab_etl.database.repositories.staging_repository import StagingRepository
from lab_etl.pipeline.exceptions import UnknownEntityError
from lab_etl.storage.models import StoragePaths
from lab_etl.transform import mappers
from lab_etl.transform.models import FieldSpec, MapFunction

PostProcess = Callable[[psycopg.Connection[Any]], None]

ORDERS = "orders"
LAB_PRODUCT = "products"
LAB_PRACTICE = "practices"
LAB_PRODUCT_MAPPING = "mappings"
LAB_PRACTICE_MAPPING = "practice-mappings"
DENTAL_GROUPS = "dental-groups"

MERGE_ORDERS_PROCEDURE = "merge_orders_stage"


@dataclass(frozen=True)
class PipelineDefinition:
    """Everything the engine needs to load one entity's files."""

    name: str
    label: str
    required_fields: tuple[str, ...]
    map_row: MapFunction
    repository: EntityRepository
    paths: StoragePaths | None
    truncate_before_load: bool = False
    post_process: PostProcess | None = None


class PipelineRegistry:
    """Read-only, insertion-ordered set of pipeline definitions."""

    def __init__(self, definitions: list[PipelineDefinition]) -> None:
        self._definitions = {d.name: d for d in definitions}

    def get(self, name: str) -> PipelineDefinition:
        try:
            return self._definitions[name]
        except KeyError:
            raise UnknownEntityError(
                f"Unknown pipeline '{name}'. Choose from: {list(self._definitions)}"
            ) from None

    def names(self) -> list[str]:
        return list(self._definitions)

    def __iter__(self) -> Iterator[PipelineDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


def _paths(base: str) -> StoragePaths | None:
    return StoragePaths.from_base(base) if base.strip() else None


def _columns(fields: tuple[FieldSpec, ...]) -> tuple[str, ...]:
    return tuple(f.target for f in fields)


def _reference(  # noqa: PLR0913
    name: str,
    label: str,
    table: str,
    fields: tuple[FieldSpec, ...],
    conflict: tuple[str, ...],
    required: tuple[str, ...],
    map_row: MapFunction,
    base_path: str,
) -> PipelineDefinition:
    return PipelineDefinition(
        name=name,
        label=label,
        required_fields=required,
        map_row=map_row,
        repository=EntityRepository(TableSpec(table, _columns(fields), conflict)),
        paths=_paths(base_path),
    )


def build_registry(settings: Settings) -> PipelineRegistry:
    """Register the six entities in processing order."""
    orders_repo = StagingRepository(
        TableSpec("orders_stage", _columns(mappers.ORDER_FIELDS)),
        merge_procedure=MERGE_ORDERS_PROCEDURE,
    )
    orders = PipelineDefinition(
        name=ORDERS,
        label="order",
        required_fields=(
            "submissiondate",
            "casedate",
            "caseid",
            "productid",
            "quantity",
            "customerid",
        ),
        map_row=mappers.map_order,
        repository=orders_repo,
        paths=_paths(settings.orders_source_path),
        truncate_before_load=True,
        post_process=orders_repo.call_merge,
    )
    return PipelineRegistry(
        [
            orders,
            _reference(
                LAB_PRODUCT,
                "lab product",
                "incisive_product_catalog",
                mappers.LAB_PRODUCT_FIELDS,
                ("incisive_id",),
                ("incisive_id", "incisive_name", "category"),
                mappers.map_lab_product,
                settings.lab_product_source_path,
            ),
            _reference(
                LAB_PRACTICE,
                "lab practice",
                "dental_practices",
                mappers.LAB_PRACTICE_FIELDS,
                ("practice_id",),
                ("practice_id", "dental_group_id"),
                mappers.map_lab_practice,
                settings.lab_practice_source_path,
            ),
            _reference(
                LAB_PRODUCT_MAPPING,
                "lab product mapping",
                "lab_product_mapping",
                mappers.LAB_PRODUCT_MAPPING_FIELDS,
                ("lab_id", "lab_product_id"),
                ("lab_id", "lab_product_id", "incisive_product_id"),
                mappers.map_lab_product_mapping,
                settings.lab_product_mapping_source_path,
            ),
            _reference(
                LAB_PRACTICE_MAPPING,
                "lab practice mapping",
                "lab_practice_mapping",
                mappers.LAB_PRACTICE_MAPPING_FIELDS,
                ("lab_id", "lab_practice_id"),
                ("lab_id", "practice_id", "lab_practice_id"),
                mappers.map_lab_practice_mapping,
                settings.lab_practice_mapping_source_path,
            ),
            _reference(
                DENTAL_GROUPS,
                "dental groups",
                "dental_groups",
                mappers.DENTAL_GROUP_FIELDS,
                ("dental_group_id",),
                ("dental_group_id",),
                mappers.map_dental_group,
                settings.dental_groups_source_path,
            ),
        ]
    )


ENTITY_NAMES = (
    ORDERS,
    LAB_PRODUCT,
    LAB_PRACTICE,
    LAB_PRODUCT_MAPPING,
    LAB_PRACTICE_MAPPING,
    DENTAL_GROUPS,
)
