"""Meta-command result and describe-row models."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

# Width of the indent placed in front of section entries in \d output
SECTION_INDENT = "    "


class Result(BaseModel):
    """Uniform tabular output of a meta-command."""

    columns: list[str] = Field(
        default_factory=list, description="Column names in display order"
    )
    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Rows keyed by column name"
    )
    message: str = Field(default="", description="Caption for the result")
    is_error: bool = Field(default=False, description="Whether this is an error")
    execution_time_ms: Optional[float] = Field(
        None, description="Execution time in milliseconds"
    )

    @property
    def row_count(self) -> int:
        """Number of rows."""
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        """Check if result set is empty."""
        return not self.rows

    def get_column_values(self, column: str) -> list[Any]:
        """Extract all values for a specific column."""
        return [row.get(column) for row in self.rows]

    def to_table_string(self, max_rows: Optional[int] = None) -> str:
        """Format result as an aligned text table under its caption."""
        lines = [self.message] if self.message else []
        if not self.columns:
            return "\n".join(lines)

        display_rows = self.rows if max_rows is None else self.rows[:max_rows]
        cells = [
            ["" if row.get(col) is None else str(row.get(col)) for col in self.columns]
            for row in display_rows
        ]
        widths = [len(col) for col in self.columns]
        for values in cells:
            for i, value in enumerate(values):
                widths[i] = max(widths[i], len(value))

        lines.append(" | ".join(c.ljust(w) for c, w in zip(self.columns, widths)))
        lines.append("-+-".join("-" * w for w in widths))
        for values in cells:
            lines.append(" | ".join(v.ljust(w) for v, w in zip(values, widths)))

        if len(display_rows) < len(self.rows):
            lines.append(f"... ({len(self.rows) - len(display_rows)} more rows)")
        else:
            suffix = "row" if len(self.rows) == 1 else "rows"
            lines.append(f"({len(self.rows)} {suffix})")

        return "\n".join(lines)


class DataRow(BaseModel):
    """A real catalog row from the base column listing."""

    kind: Literal["data"] = "data"
    values: dict[str, Any]

    def flatten(self, columns: list[str]) -> dict[str, Any]:
        return {col: self.values.get(col) for col in columns}


class SectionLabel(BaseModel):
    """Header introducing a section, e.g. ``Indexes:``."""

    kind: Literal["label"] = "label"
    label: str

    def flatten(self, columns: list[str]) -> dict[str, Any]:
        return _pseudo_row(columns, "", self.label)


class IndentedRow(BaseModel):
    """An entry beneath a section label."""

    kind: Literal["indented"] = "indented"
    name: str
    definition: str

    def flatten(self, columns: list[str]) -> dict[str, Any]:
        return _pseudo_row(columns, SECTION_INDENT + self.name, self.definition)


DescribeRow = Annotated[
    Union[DataRow, SectionLabel, IndentedRow], Field(discriminator="kind")
]


def _pseudo_row(columns: list[str], first: str, second: str) -> dict[str, Any]:
    # label/entry rows occupy the first two columns and blank the rest
    row = {col: "" for col in columns}
    if columns:
        row[columns[0]] = first
    if len(columns) > 1:
        row[columns[1]] = second
    return row


def flatten_describe_rows(
    columns: list[str], rows: list[DescribeRow]
) -> list[dict[str, Any]]:
    """Flatten tagged describe rows into plain column-keyed dicts."""
    return [row.flatten(columns) for row in rows]
