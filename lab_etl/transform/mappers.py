"""Per-entity mapping from normalized CSV rows to table-shaped rows."""

from collections.abc import Mapping, Sequence

from lab_etl.transform.exceptions import CoercionError
from lab_etl.transform.models import FieldKind, FieldSpec, MappedRow


def _text(target: str, source: str | None = None) -> FieldSpec:
    return FieldSpec(target, source or target.replace("_", ""), FieldKind.TEXT)


def _int(target: str, source: str | None = None) -> FieldSpec:
    return FieldSpec(target, source or target.replace("_", ""), FieldKind.INTEGER)


def _int_text(target: str, source: str | None = None) -> FieldSpec:
    return FieldSpec(target, source or target.replace("_", ""), FieldKind.INTEGER_TEXT)


def _bool(target: str, source: str | None = None) -> FieldSpec:
    return FieldSpec(target, source or target.replace("_", ""), FieldKind.BOOLEAN)


ORDER_FIELDS: tuple[FieldSpec, ...] = (
    _text("submissiondate"),
    _text("shippingdate"),
    _text("casedate"),
    _int_text("caseid"),
    _text("productid"),
    _text("productdescription"),
    _int("quantity"),
    _text("productprice"),
    _text("patientname"),
    _text("customerid"),
    _text("customername"),
    _text("address"),
    _text("phonenumber"),
    _text("casestatus"),
    _text("holdreason"),
    _text("estimatecompletedate"),
    _text("requestedreturndate"),
    _text("trackingnumber"),
    _text("estimatedshipdate"),
    _text("holddate"),
    _text("deliverystatus"),
    _text("notes"),
    _text("onhold"),
    _text("shade"),
    _text("mold"),
    _text("doctorpreferences"),
    _text("productpreferences"),
    _text("comments"),
    _text("casetotal"),
)

LAB_PRODUCT_FIELDS: tuple[FieldSpec, ...] = (
    _int("incisive_id"),
    _text("incisive_name"),
    _text("category"),
    _text("sub_category"),
)

LAB_PRACTICE_FIELDS: tuple[FieldSpec, ...] = (
    _int("practice_id"),
    _int("dental_group_id"),
    _text("dental_group_name"),
    _text("address"),
    _text("address_2"),
    _text("city"),
    _text("state"),
    _text("zip"),
    _text("phone"),
    _text("clinical_email"),
    _text("billing_email"),
    _text("incisive_email"),
    _text("preferred_contact_method"),
    _text("fee_schedule"),
    _text("status"),
)

LAB_PRODUCT_MAPPING_FIELDS: tuple[FieldSpec, ...] = (
    _int("lab_id"),
    _text("lab_product_id"),
    _int("incisive_product_id"),
)

LAB_PRACTICE_MAPPING_FIELDS: tuple[FieldSpec, ...] = (
    _int("lab_id"),
    _int("practice_id"),
    _text("lab_practice_id"),
)

DENTAL_GROUP_FIELDS: tuple[FieldSpec, ...] = (
    _int("dental_group_id"),
    _text("name"),
    _text("address"),
    _text("address_2"),
    _text("city"),
    _text("state"),
    _text("zip"),
    _text("account_type"),
    _bool("centralized_billing"),
    _text("sales_channel"),
    _text("sales_rep"),
)


def map_fields(row: Mapping[str, object], fields: Sequence[FieldSpec]) -> MappedRow:
    """Project a normalized row onto ``fields``.

    A value that fails coercion maps to ``None`` and its column is listed in
    ``MappedRow.invalid_fields`` so the row can be rejected as invalid rather
    than loaded with a silently dropped value.
    """
    values: dict[str, object] = {}
    invalid: list[str] = []
    for spec in fields:
        try:
            values[spec.target] = spec.convert(row.get(spec.source))
        except CoercionError:
            values[spec.target] = None
            invalid.append(spec.target)
    return MappedRow(values=values, invalid_fields=tuple(invalid))


def map_order(row: Mapping[str, object]) -> MappedRow:
    return map_fields(row, ORDER_FIELDS)


def map_lab_product(row: Mapping[str, object]) -> MappedRow:
    return map_fields(row, LAB_PRODUCT_FIELDS)


def map_lab_practice(row: Mapping[str, object]) -> MappedRow:
    return map_fields(row, LAB_PRACTICE_FIELDS)


def map_lab_product_mapping(row: Mapping[str, object]) -> MappedRow:
    return map_fields(row, LAB_PRODUCT_MAPPING_FIELDS)


def map_lab_practice_mapping(row: Mapping[str, object]) -> MappedRow:
    return map_fields(row, LAB_PRACTICE_MAPPING_FIELDS)


def map_dental_group(row: Mapping[str, object]) -> MappedRow:
    return map_fields(row, DENTAL_GROUP_FIELDS)
