from typing import Optional, Sequence

from ..core.schemas import TableDefinition


def quote_ident(ident: str) -> str:
    """Quote a column or table identifier, doubling embedded double quotes."""
    if not ident or "\x00" in ident:
        raise ValueError(f"Invalid identifier: {ident!r}")
    return '"' + ident.replace('"', '""') + '"'


def quote_table(name: str) -> str:
    """Quote a possibly schema-qualified table name."""
    return ".".join(quote_ident(part) for part in name.split("."))


def create_table_sql(definition: TableDefinition) -> str:
    cols = ", ".join(f"{quote_ident(c.name)} {c.target_type}" for c in definition.columns)
    return f"CREATE TABLE IF NOT EXISTS {quote_table(definition.name)} ({cols})"


def truncate_sql(table: str) -> str:
    return f"TRUNCATE TABLE {quote_table(table)}"


def copy_sql(table: str, columns: Optional[Sequence[str]] = None) -> str:
    """COPY statement reading the default text format from the client."""
    column_list = f" ({', '.join(quote_ident(c) for c in columns)})" if columns else ""
    return f"COPY {quote_table(table)}{column_list} FROM STDIN"
