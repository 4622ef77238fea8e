from __future__ import annotations
from pathlib import Path
import json
from typing import Any, Dict, Optional

from unizip.model import ArchiveResult

def write_json(path: Path, obj: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")

def write_manifest(path: Path, result: ArchiveResult, config_snapshot: Optional[Dict[str, Any]] = None) -> None:
    obj = result.model_dump()
    if config_snapshot is not None:
        obj["config_snapshot"] = config_snapshot
    write_json(path, obj)
