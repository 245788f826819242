# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Internal pandas helpers"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

import pandas as pd


def strip_odata_keys(record: Dict[str, Any]) -> Dict[str, Any]:
    """Remove OData annotation keys (keys containing '@' or starting with 'odata.') from a record dict."""
    return {k: v for k, v in record.items() if "@" not in k and not k.startswith("odata.")}


def records_to_dataframe(
    records: Iterable[Any],
    columns: Optional[Sequence[str]] = None,
    strip_annotations: bool = True,
) -> pd.DataFrame:
    """Build a DataFrame from loaded records (outer union of keys; missing keys are NaN).

    :param records: Records as returned by a load. Non-dict entries are skipped.
    :param columns: Optional column order; unknown columns are added as all-NaN.
    :param strip_annotations: When True (default), OData annotation keys are dropped.
    """
    rows = [strip_odata_keys(r) if strip_annotations else dict(r) for r in records if isinstance(r, dict)]
    if not rows:
        return pd.DataFrame(columns=list(columns) if columns else None)
    df = pd.DataFrame.from_records(rows)
    if columns:
        df = df.reindex(columns=list(columns))
    return df
