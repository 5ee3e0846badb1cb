"""
Schema resolution: DBF field list → target table definition and transforms.
"""
from typing import List, Sequence, Tuple

from ..setup.logging import logger
from .constants import TYPE_MAP, INTEGRAL_NUMERIC_TYPE
from .errors import UnmappedTypeError
from .schemas import FieldDescriptor, TargetColumn, TableDefinition
from .transforms import Transform, transform_for


def map_type(field: FieldDescriptor) -> str:
    """
    Map a DBF field to its PostgreSQL column type.

    Raises:
        UnmappedTypeError: If the field's type tag has no target type.
    """
    tag = field.type_tag.upper()
    template = TYPE_MAP.get(tag)
    if template is None:
        raise UnmappedTypeError(field.name, field.type_tag)
    if tag == "N" and not field.decimals:
        template = INTEGRAL_NUMERIC_TYPE
    return template.format(length=field.length, decimals=field.decimals)


class SchemaResolver:
    """Derives the target columns and the per-field transforms of a DBF file."""

    def __init__(self, lowercase_names: bool = True):
        self.lowercase_names = lowercase_names

    def column_name(self, field: FieldDescriptor) -> str:
        return field.name.lower() if self.lowercase_names else field.name

    def resolve_columns(self, fields: Sequence[FieldDescriptor]) -> List[TargetColumn]:
        """Map every field to a column; any unmapped type aborts resolution."""
        return [TargetColumn(self.column_name(field), map_type(field)) for field in fields]

    def resolve_transforms(self, fields: Sequence[FieldDescriptor]) -> List[Transform]:
        """Index-aligned transforms; unknown type tags get the identity transform."""
        return [transform_for(field.type_tag) for field in fields]

    def resolve(self, table_name: str,
                fields: Sequence[FieldDescriptor]) -> Tuple[TableDefinition, List[Transform]]:
        definition = TableDefinition(name=table_name, columns=self.resolve_columns(fields))
        transforms = self.resolve_transforms(fields)
        logger.debug(
            f"[SchemaResolver] {table_name}: "
            + ", ".join(f"{c.name} {c.target_type}" for c in definition.columns)
        )
        return definition, transforms
