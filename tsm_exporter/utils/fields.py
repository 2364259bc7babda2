"""Column-to-attribute mapping for typed metric records."""

from dataclasses import dataclass
from typing import Dict, Generic, Iterable, List, Sequence, Type, TypeVar

from .parsing import parse_float

T = TypeVar('T')

BYTES_PER_MB = 1024 * 1024
RATIO_TOKENS = ("percent", "ratio")


@dataclass(frozen=True)
class Field:
    """One query column and the record attribute it populates."""

    column: str
    attribute: str
    numeric: bool = True

    def convert(self, raw: str):
        """
        Convert a raw field to the attribute value.

        Numeric columns ending in _MB are scaled to bytes; attributes named
        as a percent or ratio are scaled from 0-100 to 0.0-1.0.

        Raises:
            ParseError: If a numeric value cannot be parsed
        """
        if not self.numeric:
            return raw
        value = parse_float(raw)
        if any(token in self.attribute.lower().split("_") for token in RATIO_TOKENS):
            value = value / 100
        elif self.column.upper().endswith("_MB"):
            value = value * BYTES_PER_MB
        return value


class FieldMap(Generic[T]):
    """Builds records of one type from rows whose columns follow a field table."""

    def __init__(self, record_type: Type[T], fields: Iterable[Field]):
        self.record_type = record_type
        # Query columns are selected in sorted order so rows line up with the table
        self.fields: List[Field] = sorted(fields, key=lambda f: f.column)

    @classmethod
    def from_mapping(
        cls,
        record_type: Type[T],
        mapping: Dict[str, str],
        labels: Sequence[str] = ()
    ) -> "FieldMap[T]":
        """
        Build a field map from a column -> attribute dict.

        Args:
            record_type: Record class instantiated with attribute keywords
            mapping: Column name to attribute name
            labels: Columns holding string labels rather than numbers
        """
        return cls(
            record_type,
            [Field(column, attribute, numeric=column not in labels) for column, attribute in mapping.items()]
        )

    @property
    def columns(self) -> List[str]:
        return [f.column for f in self.fields]

    def matches(self, record: Sequence[str]) -> bool:
        """True when the row has one value per mapped column."""
        return len(record) == len(self.fields)

    def build(self, record: Sequence[str]) -> T:
        """
        Build one record from a row.

        Raises:
            ParseError: If any numeric value cannot be parsed
        """
        return self.record_type(**{f.attribute: f.convert(raw) for f, raw in zip(self.fields, record)})
