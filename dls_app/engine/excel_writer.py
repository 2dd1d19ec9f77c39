from __future__ import annotations

import csv
import json
import math
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd
from openpyxl import Workbook

from dls_app.engine.plugin_api import Spectrum


def _ensure_parent(path: Path) -> None:
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def _clean_value(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        value = value.tolist()
    elif isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return value
    if isinstance(value, (list, tuple, set)):
        return json.dumps([_clean_value(v) for v in value])
    if isinstance(value, dict):
        return json.dumps({str(k): _clean_value(v) for k, v in value.items()})
    if isinstance(value, (Path, os.PathLike)):
        value = os.fspath(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        if value and value[0] in "=+-@":
            if not value.startswith("'"):
                return "'" + value
        return value
    return value


def _flatten_dict(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        safe_key = str(key).replace(" ", "_").replace("/", "_")
        new_key = safe_key if not prefix else f"{prefix}.{safe_key}"
        if isinstance(value, dict):
            flat.update(_flatten_dict(value, new_key))
        else:
            flat[new_key] = _clean_value(value)
    return flat


def _column_label(spectrum: Spectrum, symbol: str) -> str:
    variable = spectrum.variables[symbol]
    return f"{variable.label} ({variable.units})" if variable.units else variable.label


def _variables_frame(spectrum: Spectrum) -> pd.DataFrame:
    """One column per variable symbol, ``x`` first; shorter arrays are padded with NaN."""

    symbols = ["x", "y"] + [s for s in spectrum.variables if s not in ("x", "y")]
    columns = {symbol: pd.Series(np.asarray(spectrum.variables[symbol].data, dtype=float)) for symbol in symbols}
    return pd.DataFrame(columns)


def _distribution_table_tidy(spectra: Sequence[Spectrum]) -> Tuple[List[str], List[List[Any]]]:
    symbols: List[str] = []
    labels: Dict[str, str] = {}
    for spectrum in spectra:
        for symbol in spectrum.variables:
            if symbol not in labels:
                symbols.append(symbol)
                labels[symbol] = _column_label(spectrum, symbol)
    header = ["spectrum_id", "title", "point"] + [labels[symbol] for symbol in symbols]
    rows: List[List[Any]] = []
    for spectrum in spectra:
        frame = _variables_frame(spectrum)
        for point, record in enumerate(frame.to_dict("records")):
            row = [_clean_value(spectrum.id), _clean_value(spectrum.title), point]
            row.extend(_clean_value(record.get(symbol)) for symbol in symbols)
            rows.append(row)
    return header, rows


def _distribution_table_wide(spectra: Sequence[Spectrum]) -> Tuple[List[str], List[List[Any]]]:
    columns: List[Tuple[str, np.ndarray]] = []
    for spectrum in spectra:
        name = spectrum.title or spectrum.id
        for symbol, variable in spectrum.variables.items():
            columns.append((f"{name}:{_column_label(spectrum, symbol)}", np.asarray(variable.data, dtype=float)))
    header = [label for label, _ in columns]
    length = max((data.shape[0] for _, data in columns), default=0)
    rows: List[List[Any]] = []
    for idx in range(length):
        rows.append([_clean_value(data[idx]) if idx < data.shape[0] else None for _, data in columns])
    return header, rows


def _distribution_table(spectra: Sequence[Spectrum], layout: str) -> Tuple[List[str], List[List[Any]]]:
    if layout == "wide":
        return _distribution_table_wide(spectra)
    return _distribution_table_tidy(spectra)


def _metadata_rows(spectra: Sequence[Spectrum]) -> List[Dict[str, Any]]:
    rows = []
    for spectrum in spectra:
        row: Dict[str, Any] = {"id": spectrum.id, "title": spectrum.title, "data_type": spectrum.data_type}
        row.update(_flatten_dict(dict(spectrum.meta or {}), "meta"))
        row.update(_flatten_dict(dict(spectrum.settings or {}), "settings"))
        rows.append(row)
    return rows


def _qc_rows(qc_table: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{key: _clean_value(value) for key, value in row.items()} for row in qc_table or []]


def _write_dict_rows(ws, rows: List[Dict[str, Any]]):
    keys: List[str] = []
    for row in rows:
        for key in row:
            if key not in keys:
                keys.append(key)
    ws.append(keys)
    for row in rows:
        ws.append([_clean_value(row.get(key)) for key in keys])


def write_workbook(
    out_path: str | Path,
    spectra: Sequence[Spectrum],
    qc_table,
    audit,
    *,
    layout: str = "tidy",
) -> str:
    workbook_path = Path(out_path)
    _ensure_parent(workbook_path)

    wb = Workbook()
    ws_distributions = wb.active
    ws_distributions.title = "Distributions"
    header, rows = _distribution_table(spectra, layout)
    ws_distributions.append([_clean_value(label) for label in header])
    for row in rows:
        ws_distributions.append(row)

    ws_metadata = wb.create_sheet("Metadata")
    _write_dict_rows(ws_metadata, _metadata_rows(spectra))

    ws_qc = wb.create_sheet("QC_Flags")
    _write_dict_rows(ws_qc, _qc_rows(qc_table))

    ws_audit = wb.create_sheet("Audit_Log")
    ws_audit.append(["Index", "Entry"])
    for idx, entry in enumerate(audit or [], start=1):
        ws_audit.append([idx, _clean_value(entry)])

    wb.save(workbook_path)
    return str(workbook_path)


def write_single_spectrum_csv(out_path: str | Path, spectrum: Spectrum) -> Path:
    """Write ``spectrum`` to a CSV file and return the emitted path."""

    csv_path = Path(out_path)
    _ensure_parent(csv_path)

    frame = _variables_frame(spectrum)
    header = [_column_label(spectrum, symbol) for symbol in frame.columns]

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)

        flattened = _flatten_dict(dict(spectrum.meta or {}), "meta")
        flattened.update(_flatten_dict(dict(spectrum.settings or {}), "settings"))
        writer.writerow(["metadata_key", "metadata_value"])
        for key, value in sorted(flattened.items()):
            writer.writerow([key, value])

        writer.writerow([])
        writer.writerow(header)
        for record in frame.itertuples(index=False):
            writer.writerow([_clean_value(value) for value in record])

    return csv_path
