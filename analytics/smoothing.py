from __future__ import annotations

"""Smoothing utilities (EWMA over session order)."""

import pandas as pd


def ewma_by_session(
    df: pd.DataFrame,
    value_col: str,
    span: int,
    group_cols: list[str] | None = None,
) -> pd.DataFrame:
    """Exponentially weighted mean of `value_col` per group, in session order.

    Groups default to the drill mode so scores of different drills never bleed
    into each other. Returns a copy sorted by session_idx with a new column
    f"{value_col}_smooth".
    """
    group_cols = ["mode"] if group_cols is None else group_cols
    g = df.sort_values("session_idx").copy()
    out_col = f"{value_col}_smooth"
    if g.empty:
        g[out_col] = pd.Series(dtype="float32")
        return g
    values = g[value_col].astype("float32")
    if group_cols:
        # transform keeps the original row index, so no realignment is needed
        smooth = values.groupby([g[c] for c in group_cols], observed=True).transform(lambda s: s.ewm(span=span).mean())
    else:
        smooth = values.ewm(span=span).mean()
    g[out_col] = smooth.astype("float32")
    return g
