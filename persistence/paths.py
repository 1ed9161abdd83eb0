from __future__ import annotations

from pathlib import Path


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def kv_dir(data_dir: Path) -> Path:
    return ensure_dir(data_dir / "kv")


def uploads_dir(data_dir: Path) -> Path:
    return ensure_dir(data_dir / "uploads")
