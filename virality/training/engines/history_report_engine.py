from __future__ import annotations

from pathlib import Path
from typing import List

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


class HistoryReportEngine:
    """
    HistoryReportEngine（FINAL / FROZEN）

    Responsibility:
    - Persist training history reports (CSV / PNG)
    - Charts only read the history; nothing here feeds inference
    """

    def write_csv(self, df: pd.DataFrame, out_dir: Path) -> Path:
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / "history.csv"
        df.to_csv(path, index=False)
        return path

    def plot_loss(self, df: pd.DataFrame, out_dir: Path) -> Path:
        path = out_dir / "loss.png"

        plt.figure(figsize=(10, 4))
        plt.plot(df["epoch"], df["loss"], label="train")
        plt.plot(df["epoch"], df["val_loss"], label="validation")
        plt.title("Loss")
        plt.xlabel("Epoch")
        plt.legend()
        plt.grid(True)
        plt.tight_layout()
        plt.savefig(path)
        plt.close()

        return path

    def plot_metric(self, df: pd.DataFrame, out_dir: Path, *, train: str, val: str, title: str) -> Path:
        path = out_dir / f"{title.lower().replace(' ', '_')}.png"

        plt.figure(figsize=(10, 4))
        plt.plot(df["epoch"], df[train], label="train")
        plt.plot(df["epoch"], df[val], label="validation")
        plt.title(title)
        plt.xlabel("Epoch")
        plt.legend()
        plt.grid(True)
        plt.tight_layout()
        plt.savefig(path)
        plt.close()

        return path

    def write_all(self, df: pd.DataFrame, out_dir: Path, task: str) -> List[Path]:
        paths = [self.write_csv(df, out_dir), self.plot_loss(df, out_dir)]
        if task == "classification":
            paths.append(self.plot_metric(df, out_dir, train="accuracy", val="val_accuracy", title="Accuracy"))
        else:
            paths.append(self.plot_metric(df, out_dir, train="mae", val="val_mae", title="MAE"))
        return paths
