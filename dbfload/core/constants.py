"""
Core constants for the project.
"""

from typing import Dict

DEFAULT_QUEUE_CAPACITY = 4096

# PostgreSQL column type per DBF type tag, formatted with the field's
# length and decimals. Tags missing here cannot be loaded.
TYPE_MAP: Dict[str, str] = {
    "C": "varchar({length})",
    "N": "numeric({length},{decimals})",
    "F": "double precision",
    "L": "boolean",
    "D": "date",
    "I": "integer",
    "Y": "numeric(19,4)",
    "T": "timestamp",
}

# Numeric fields without decimals drop the scale
INTEGRAL_NUMERIC_TYPE = "numeric({length})"
