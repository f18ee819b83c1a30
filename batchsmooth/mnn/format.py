"""Formatting for correction results."""

import numpy as np
from prettytable import PrettyTable, TableStyle

from .results import CorrectionResult

MIN_WIDTH = 78
SUMMARY_COLUMNS = ["", "Min", "Q1", "Median", "Q3", "Max", "NaN"]
REFERENCE = "See Haghverdi et al. (2018) for details."


def format_value(val, fmt=".4f", na_str="NA"):
    """Format a numeric value, returning na_str for None/NaN."""
    if val is None or (isinstance(val, (float, np.floating)) and np.isnan(val)):
        return na_str
    return f"{val:{fmt}}"


def format_summary_table(label, values):
    """Render min / quartiles / max / NaN count of ``values`` as a one-row table."""
    values = np.asarray(values, dtype=np.float64)
    finite = values[np.isfinite(values)]
    if finite.size:
        stats = [finite.min(), *np.percentile(finite, [25, 50, 75]), finite.max()]
    else:
        stats = [np.nan] * 5

    table = PrettyTable(SUMMARY_COLUMNS)
    table.set_style(TableStyle.SINGLE_BORDER)
    table.add_row([label, *(format_value(s) for s in stats), str(int(np.isnan(values).sum()))])
    table.align = "r"
    table.align[""] = "l"
    return table.get_string().split("\n")


def _block(title, rows):
    """A titled block of ``(label, value)`` lines under a thin rule."""
    return [None, "-", f" {title}", "-", *(f" {label}: {value}" for label, value in rows)]


def _render(lines):
    """Join lines, expanding the ``"="``/``"-"`` placeholders into full-width rules."""
    width = max([MIN_WIDTH, *(len(line) for line in lines if line not in (None, "=", "-"))])
    out = []
    for line in lines:
        if line is None:
            out.append("")
        elif line in ("=", "-"):
            out.append(line * width)
        else:
            out.append(line)
    return "\n".join(out)


def format_correction_result(result: CorrectionResult) -> str:
    """Format a batch correction result for display."""
    params = result.estimation_params
    n_genes, n_query = result.corrected.shape

    lines = ["=", " Mutual Nearest Neighbour Batch Correction", "="]
    lines += [None, " Correction Magnitude by Sample:"]
    lines += format_summary_table("L2 norm", np.sqrt(np.sum(result.correction**2, axis=0)))
    if result.scaling is not None:
        lines += [None, " Variance Adjustment Scale Factors:"]
        lines += format_summary_table("Scale", result.scaling)

    lines += _block(
        "Data Info",
        [
            ("Reference samples", params.get("n_reference", "NA")),
            ("Query samples", n_query),
            ("Genes", n_genes),
            ("Pairs", result.n_pairs),
            ("Anchors", len(result.anchors)),
        ],
    )

    details = [
        ("Bandwidth (sigma)", format_value(params.get("sigma"), ".4g")),
        ("Variance adjustment", "Yes" if params.get("var_adj") else "No"),
    ]
    if params.get("n_jobs", 1) != 1:
        details.append(("Worker threads", params["n_jobs"]))
    lines += _block("Smoothing Details", details)

    lines += ["=", f" {REFERENCE}"]
    return _render(lines)


CorrectionResult.__repr__ = format_correction_result
CorrectionResult.__str__ = format_correction_result
