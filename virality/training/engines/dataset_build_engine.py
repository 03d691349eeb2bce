# virality/training/engines/dataset_build_engine.py
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from virality import logs
from virality.utils.errors import EmptyDatasetError, SchemaError


@dataclass(frozen=True)
class Dataset:
    """
    Parsed training table.

    X columns follow `feature_names` (the model order), not file order.
    """

    X: pd.DataFrame
    y: pd.Series
    feature_names: Tuple[str, ...]
    label_name: str

    def __len__(self) -> int:
        return len(self.X)

    def features(self) -> np.ndarray:
        return self.X.to_numpy(dtype=np.float64)

    def targets(self) -> np.ndarray:
        return self.y.to_numpy(dtype=np.float64)


class DatasetBuildEngine:
    """
    DatasetBuildEngine（FINAL / FROZEN）

    Responsibility:
    - delimited text -> Dataset
    - own ALL dataset construction semantics:
        - header validation (order-independent, presence-mandatory)
        - ragged row rejection
        - numeric coercion + sanitization (inf / NaN)

    Contract:
    - Engine guarantees:
        - X / y index-aligned
        - every cell finite
        - at least one row, else EmptyDatasetError
    """

    def __init__(
            self,
            *,
            feature_columns: Sequence[str],
            label_column: str,
            delimiter: str = ",",
    ):
        self.feature_columns = tuple(feature_columns)
        self.label_column = label_column
        self.delimiter = delimiter

    # ======================================================================
    # Public API
    # ======================================================================
    def load(self, path: Path | str) -> Dataset:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"training table not found: {path}")
        logs.info(f"[DatasetBuildEngine] load {path}")
        return self.parse(path.read_text(encoding="utf-8-sig"))

    def parse(self, text: str) -> Dataset:
        # BOM 由 Excel 等工具写入, 只出现在首个表头单元格
        reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=self.delimiter)
        records = [(reader.line_num, r) for r in reader if any(c.strip() for c in r)]
        if not records:
            raise EmptyDatasetError("empty training table: no header line")

        header = [h.strip() for h in records[0][1]]
        self._validate_header(header)

        rows = self._collect_rows(header, records[1:])
        if not rows:
            raise EmptyDatasetError("no valid data rows found")

        frame = pd.DataFrame(rows, columns=header)
        required = list(self.feature_columns) + [self.label_column]
        frame = frame[required].apply(pd.to_numeric, errors="coerce")

        # ==============================================================
        # Numeric sanitization 数值合法性保证(唯一合法位置)
        # ==============================================================
        frame = frame.replace([np.inf, -np.inf], np.nan)
        bad = frame.isna().any(axis=1)
        if bad.any():
            logs.warning(
                f"[DatasetBuildEngine] dropped {int(bad.sum())} row(s) with "
                f"non-numeric or non-finite cells"
            )
            frame = frame.loc[~bad]

        if frame.empty:
            raise EmptyDatasetError("no valid data rows found")

        frame = frame.reset_index(drop=True)
        logs.info(
            f"[DatasetBuildEngine] rows={len(frame)} "
            f"features={len(self.feature_columns)} label={self.label_column}"
        )

        return Dataset(
            X=frame[list(self.feature_columns)].astype(np.float64),
            y=frame[self.label_column].astype(np.float64),
            feature_names=self.feature_columns,
            label_name=self.label_column,
        )

    # ======================================================================
    # Internal
    # ======================================================================
    def _validate_header(self, header: List[str]) -> None:
        dupes = sorted({h for h in header if header.count(h) > 1})
        if dupes:
            raise SchemaError(f"duplicate columns: {', '.join(dupes)}", columns=dupes)

        missing_features = [c for c in self.feature_columns if c not in header]
        if missing_features:
            raise SchemaError(
                f"Missing features: {', '.join(missing_features)}",
                columns=missing_features,
            )

        if self.label_column not in header:
            raise SchemaError(
                f"Missing target column: {self.label_column}",
                columns=[self.label_column],
            )

        extra = [h for h in header if h not in self.feature_columns and h != self.label_column]
        if extra:
            logs.debug(f"[DatasetBuildEngine] ignoring columns: {extra}")

    def _collect_rows(
            self,
            header: List[str],
            records: List[Tuple[int, List[str]]],
    ) -> List[List[str]]:
        rows: List[List[str]] = []
        for line_no, cells in records:
            if len(cells) != len(header):
                logs.warning(
                    f"[DatasetBuildEngine] line {line_no}: expected {len(header)} "
                    f"cells, got {len(cells)} -> dropped"
                )
                continue
            rows.append([c.strip() for c in cells])
        return rows
