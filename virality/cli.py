#!filepath: virality/cli.py
import json
from pathlib import Path
from typing import Callable, Optional

import typer
from rich import print

from virality import __version__, logs
from virality.config.app_config import AppConfig
from virality.config.training_config import regression_preset
from virality.utils.errors import UserInputError, ViralityError

app = typer.Typer(help="Virality feature extraction / training / prediction CLI")


def _load_config(config: Optional[Path]) -> AppConfig:
    cfg = AppConfig.load(str(config) if config is not None else None)
    logs.reconfigure(
        log_dir=cfg.log.dir,
        rotation=cfg.log.rotation,
        retention=cfg.log.retention,
        level=cfg.log.level,
        console=cfg.log.console,
    )
    return cfg


def _run(fn: Callable[[], None]) -> None:
    """Report core errors without a traceback; exit code 1."""
    try:
        logs.catch(msg="command failed", log_time=False)(fn)()
    except ViralityError as e:
        print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1)


def _read_video(video: Path) -> bytes:
    if not video.is_file():
        raise UserInputError(f"video file not found: {video}")
    return video.read_bytes()


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def train(
        dataset: Path = typer.Argument(..., help="CSV training table with a header row"),
        config: Optional[Path] = typer.Option(None, help="YAML config (default: virality/config/base.yml)"),
        model_dir: Optional[Path] = typer.Option(None, help="Output directory for the model artifact"),
        preset: str = typer.Option("classification", help="classification | regression"),
        epochs: Optional[int] = typer.Option(None, help="Override the configured epoch count"),
):
    """
    训练模型：DatasetBuild -> ScalerFit -> ModelTrain -> HistoryReport -> ArtifactPersist
    """
    from virality.workflows.offline_training import build_offline_training

    def _train():
        cfg = _load_config(config)
        if preset == "regression":
            cfg = cfg.model_copy(update={"training": regression_preset(model_dir=cfg.training.model_dir)})
        elif preset != "classification":
            raise UserInputError(f"unknown preset: {preset}")
        if epochs is not None:
            cfg.training.epochs = epochs

        if not dataset.is_file():
            raise UserInputError(f"dataset not found: {dataset}")

        print(f"[green]Training {cfg.training.task_type} model on {dataset}[/green]")
        ctx = build_offline_training(cfg).run(dataset, model_dir=model_dir)

        result = ctx.result
        print(f"[blue]status={result.status} epochs={len(result.history)}[/blue]")
        if ctx.model_artifact is None:
            print("[yellow]Stopped before the first epoch, no model saved[/yellow]")
            return
        print(ctx.model_artifact.meta.summary)
        print(result.metrics)
        print(f"[green]Model saved to {ctx.model_dir}[/green]")

    _run(_train)


@app.command()
def predict(
        video: Path = typer.Argument(..., help="Video file"),
        title: str = typer.Option("", help="Video title"),
        description: str = typer.Option("", help="Video description"),
        model_dir: Optional[Path] = typer.Option(None, help="Model artifact directory"),
        config: Optional[Path] = typer.Option(None, help="YAML config (default: virality/config/base.yml)"),
):
    """
    对单个视频打分（分类：概率 + 标签；回归：原始单位的预测值）
    """
    from virality.inference.predictor import Predictor
    from virality.pipeline.model_handle import ModelHandle

    def _predict():
        cfg = _load_config(config)
        handle = ModelHandle()
        handle.load(model_dir if model_dir is not None else Path(cfg.training.model_dir))

        prediction = Predictor(handle).predict(_read_video(video), title, description)
        print(json.dumps(prediction.as_dict(), indent=2, ensure_ascii=False))

    _run(_predict)


@app.command()
def extract(
        video: Path = typer.Argument(..., help="Video file"),
        title: str = typer.Option("", help="Video title"),
        description: str = typer.Option("", help="Video description"),
        config: Optional[Path] = typer.Option(None, help="YAML config (default: virality/config/base.yml)"),
):
    """
    只做特征提取，输出 6 维原始特征
    """
    from virality.features.feature_extractor import FeatureExtractor

    def _extract():
        cfg = _load_config(config)
        if not video.is_file():
            raise UserInputError(f"video file not found: {video}")
        vector = FeatureExtractor(cfg.features).extract_path(video, title, description)
        print(json.dumps(vector.as_dict(), indent=2))

    _run(_extract)


if __name__ == "__main__":
    app()

# python -m virality.cli train data/videos.csv
