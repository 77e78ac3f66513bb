from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

COLORS = ["#3b82f6", "#22c55e", "#f59e0b", "#a855f7", "#ef4444", "#06b6d4"]


def distribution_chart(data: List[Dict[str, Any]], title: str) -> Dict[str, Any]:
    """Pie chart of a {"name", "value"} distribution, as a Vega-Lite spec dict."""
    df = pd.DataFrame(data, columns=["name", "value"])
    chart = (
        alt.Chart(df, title=title)
        .mark_arc(outerRadius=100)
        .encode(
            theta=alt.Theta("value:Q"),
            color=alt.Color("name:N", scale=alt.Scale(range=COLORS), legend=alt.Legend(title=None)),
            tooltip=["name:N", "value:Q"],
        )
    )
    return chart.to_dict()
