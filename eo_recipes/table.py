"""Tidy reshaping of reduced statistics before plotting."""

from __future__ import annotations

import calendar
from typing import Any, Iterable, Mapping

import geopandas as gpd
import pandas as pd

from eo_recipes.ops.raster import clean_band_names

MONTH_ABBR: list[str] = list(calendar.month_abbr)[1:]


def drop_geometry(gdf: gpd.GeoDataFrame | pd.DataFrame) -> pd.DataFrame:
    """Return the attribute table without the geometry column."""
    if isinstance(gdf, gpd.GeoDataFrame):
        return pd.DataFrame(gdf.drop(columns=[gdf.geometry.name]))
    return gdf.copy()


def to_long(
    df: pd.DataFrame,
    *,
    id_cols: Iterable[str],
    value_cols: Iterable[str] | None = None,
    prefix: str | None = None,
    names_to: str = "band",
    values_to: str = "value",
    label_pattern: str = r"_(\d+)$",
    label_name: str | None = None,
) -> pd.DataFrame:
    """Pivot wide band columns (``ndvi_1`` … ``ndvi_12``) into long rows.

    Column names are cleaned with
    :func:`~eo_recipes.ops.raster.clean_band_names` first, so ``0_ndvi_1``
    and ``X0_ndvi_1`` are treated as ``ndvi_1``.

    Parameters
    ----------
    value_cols : iterable of str, optional
        Columns to pivot.  Defaults to every column starting with *prefix*.
    label_pattern : str
        Regex whose first group is the integer label in a band name.
    label_name : str, optional
        When given, the parsed label is stored as an integer column of this
        name (``"month"``, ``"year"``) and rows are sorted by it.
    """
    id_cols = list(id_cols)
    df = drop_geometry(df)
    renamed = {
        col: clean
        for col, clean in zip(df.columns, clean_band_names(df.columns))
        if col not in id_cols
    }
    df = df.rename(columns=renamed)

    if value_cols is not None:
        value_cols = [renamed.get(c, c) for c in value_cols]
    elif prefix is not None:
        value_cols = [c for c in df.columns if c not in id_cols and str(c).startswith(prefix)]
    else:
        value_cols = [c for c in df.columns if c not in id_cols]
    if not value_cols:
        raise ValueError("No value columns to pivot")

    long = df.melt(id_vars=id_cols, value_vars=value_cols, var_name=names_to, value_name=values_to)
    sort_cols = list(id_cols)
    if label_name is not None:
        parsed = long[names_to].astype(str).str.extract(label_pattern, expand=False)
        long[label_name] = pd.to_numeric(parsed, errors="coerce").astype("Int64")
        sort_cols.append(label_name)
    else:
        sort_cols.append(names_to)
    return long.sort_values(sort_cols, kind="stable").reset_index(drop=True)


def month_abbr(df: pd.DataFrame, col: str = "month", *, name: str = "month_abbr") -> pd.DataFrame:
    """Add an ordered categorical ``Jan`` … ``Dec`` column from month numbers."""
    out = df.copy()
    labels = out[col].map(lambda m: MONTH_ABBR[int(m) - 1] if pd.notna(m) else None)
    out[name] = pd.Categorical(labels, categories=MONTH_ABBR, ordered=True)
    return out


def relabel(df: pd.DataFrame, col: str, mapping: Mapping[Any, Any]) -> pd.DataFrame:
    """Map values of *col*, leaving unmapped values unchanged (``b0`` → ``0cm``)."""
    out = df.copy()
    out[col] = out[col].map(lambda v: mapping.get(v, v))
    return out


def rank(
    df: pd.DataFrame,
    by: str,
    *,
    ascending: bool = False,
    name: str = "rank",
) -> pd.DataFrame:
    """Sort by *by* and add a 1-based rank column (ties share the best rank)."""
    out = df.copy()
    out[name] = out[by].rank(ascending=ascending, method="min").astype("Int64")
    return out.sort_values(name, kind="stable").reset_index(drop=True)
