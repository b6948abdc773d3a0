import logging
from typing import Sequence

import pandas as pd

logger = logging.getLogger(__name__)


def _row_labels(mask: pd.Series, limit: int = 10) -> str:
    labels = list(mask[mask].index[:limit])
    more = int(mask.sum()) - len(labels)
    suffix = f" (+{more} more)" if more > 0 else ""
    return f"{labels}{suffix}"


def validate_occurrences(
    df: pd.DataFrame,
    lon_col: str = "longitude",
    lat_col: str = "latitude",
    taxon_col: str = "taxon",
    geographic: bool = True,
) -> pd.DataFrame:
    """Check an occurrence table is fit for spatial joining.

    Every row must carry a numeric longitude and latitude. A missing
    coordinate would otherwise silently produce a no-data sample and end up
    flagged as unprotected, so it is rejected here instead.

    Args:
        df: Occurrence table.
        lon_col: Longitude / x column.
        lat_col: Latitude / y column.
        taxon_col: Species / taxon identifier column.
        geographic: Whether coordinates are in degrees, enabling range checks.

    Returns:
        A copy of ``df`` with float coordinate columns. Row order and index are
        unchanged.

    Raises:
        ValueError: On missing columns or missing, non-numeric or out of range
            coordinates.
    """
    required: Sequence[str] = (lon_col, lat_col, taxon_col)
    missing_cols = [c for c in required if c not in df.columns]
    if missing_cols:
        raise ValueError(f"Occurrence table is missing required columns: {missing_cols}")

    df = df.copy()
    for col in (lon_col, lat_col):
        numeric = pd.to_numeric(df[col], errors="coerce")
        bad = numeric.isna()
        if bad.any():
            raise ValueError(
                f"{int(bad.sum())} occurrence rows have a missing or non-numeric '{col}': "
                f"rows {_row_labels(bad)}"
            )
        df[col] = numeric.astype(float)

    if geographic:
        bad_lon = ~df[lon_col].between(-180, 180)
        bad_lat = ~df[lat_col].between(-90, 90)
        if bad_lon.any():
            raise ValueError(f"Longitude outside [-180, 180] in rows {_row_labels(bad_lon)}")
        if bad_lat.any():
            raise ValueError(f"Latitude outside [-90, 90] in rows {_row_labels(bad_lat)}")

    if df[taxon_col].isna().any():
        logger.warning(f"{int(df[taxon_col].isna().sum())} occurrence rows have no '{taxon_col}'")

    logger.debug(f"Validated {len(df)} occurrence rows")
    return df
