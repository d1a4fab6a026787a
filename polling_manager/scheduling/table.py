"""In-memory operator table implementing the presentation sink contract."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Sequence

from ..core.errors import InvalidArgumentError, InvalidStateError
from ..core.models import ROW_FIELDS, Column, TableRow

LOGGER = logging.getLogger(__name__)


class PollingTable:
    """Row store keyed by row key, holding raw column values.

    ``set_cell`` mimics an operator editing a cell: the table changes first
    and the dispatcher later reads the edited row back through ``get_row``.
    """

    def __init__(self) -> None:
        self._rows: "OrderedDict[str, list[Any]]" = OrderedDict()
        self.replace_count = 0
        self.upsert_count = 0

    def replace_all(self, rows: Sequence[TableRow]) -> None:
        self._rows.clear()
        for row in rows:
            self._rows[row.key] = row.as_fields()
        self.replace_count += 1
        LOGGER.debug("Table rebuilt with %d rows", len(self._rows))

    def upsert(self, rows: Sequence[TableRow]) -> None:
        for row in rows:
            self._rows[row.key] = row.as_fields()
        self.upsert_count += 1
        LOGGER.debug("Table upserted %d rows", len(rows))

    def get_row(self, key: str) -> list[Any]:
        if not key:
            raise InvalidArgumentError("Row key can't be empty")
        row = self._rows.get(key)
        if row is None:
            raise InvalidStateError(f"Row key {key!r} doesn't exist in the table")
        return list(row)

    def set_cell(self, key: str, column: Column, value: Any) -> None:
        """Overwrite one stored column value.

        Raises:
            InvalidArgumentError: If ``column`` is not a stored column.
        """
        row = self._rows.get(key)
        if row is None:
            raise InvalidStateError(f"Row key {key!r} doesn't exist in the table")
        try:
            index = ROW_FIELDS.index(column)
        except ValueError as exc:
            raise InvalidArgumentError(f"Column {column.value!r} is not editable") from exc
        row[index] = value

    def rows(self) -> Dict[str, list[Any]]:
        return {key: list(values) for key, values in self._rows.items()}

    def __len__(self) -> int:
        return len(self._rows)
