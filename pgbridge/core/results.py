from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

Row = Dict[str, Any]


@dataclass
class QueryResult:
    rows: List[Row] = field(default_factory=list)
    rowcount: int = 0

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)


def normalize(
    result: Union[QueryResult, List[Row]],
    include_nulls: bool = False,
    no_trim_strings: bool = False,
) -> Union[QueryResult, List[Row]]:
    """
    Clean raw rows in place.

    NULL columns are dropped unless include_nulls is set, string values are
    stripped unless no_trim_strings is set. Columns are never added, so
    running it twice gives the same rows as running it once.
    """
    rows = result.rows if isinstance(result, QueryResult) else result

    for row in rows:
        for column in list(row):
            value = row[column]
            if value is None:
                if not include_nulls:
                    del row[column]
            elif isinstance(value, str) and not no_trim_strings:
                row[column] = value.strip()

    return result
