from __future__ import annotations

import logging
import re
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

LOGGER = logging.getLogger("sqlitebench.charts")

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 150
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13
plt.rcParams["legend.fontsize"] = 9

RATE_COLORS = {
    "read_rate": "#2E86AB",  # Blue
    "write_rate": "#F18F01",  # Orange
}

RATE_LABELS = {
    "read_rate": "Reads/s",
    "write_rate": "Writes/s",
}

UNSECTIONED = "results"


def render_section_charts(df: pd.DataFrame, output_dir: Path) -> list[Path]:
    """Render one grouped throughput bar chart per plan section."""
    if df.empty:
        LOGGER.warning("No results available for charts")
        return []

    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    sections = df["section"].fillna(UNSECTIONED)
    for section in sections.unique():
        section_df = df[sections == section]
        chart_path = output_dir / f"{_slug(section)}.png"
        _render_rate_bars(section, section_df, chart_path)
        LOGGER.info("Rendering chart %s", chart_path)
        paths.append(chart_path)
    return paths


def _render_rate_bars(title: str, df: pd.DataFrame, chart_path: Path) -> None:
    fig, ax = plt.subplots(figsize=(12, 1.0 + 0.6 * len(df)))

    positions = np.arange(len(df))
    height = 0.4
    for offset, column in ((-height / 2, "read_rate"), (height / 2, "write_rate")):
        bars = ax.barh(
            positions + offset,
            df[column],
            height=height,
            label=RATE_LABELS[column],
            color=RATE_COLORS[column],
            alpha=0.85,
            edgecolor="white",
        )
        for bar in bars:
            width = bar.get_width()
            if width > 0:
                ax.text(
                    width,
                    bar.get_y() + bar.get_height() / 2.0,
                    f" {int(width)}",
                    va="center",
                    fontsize=8,
                )

    ax.set_yticks(positions)
    ax.set_yticklabels(df["description"], fontfamily="monospace", fontsize=8)
    ax.invert_yaxis()
    ax.set_xlabel("Operations per second", fontweight="semibold")
    ax.set_title(title, fontweight="bold", pad=15)
    ax.legend(loc="lower right", frameon=True)
    ax.grid(True, alpha=0.3, axis="x", linestyle="--")

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)


def _slug(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", label.lower()).strip("_") or UNSECTIONED
