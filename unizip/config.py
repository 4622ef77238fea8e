from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field


class ArchiveCfg(BaseModel):
    # Read buffer used when streaming each input into its entry
    buffer_size: int = Field(default=1024, gt=0)

    unicode_extra_field: Literal["always", "never", "not_ascii"] = "always"
    utf8_flag: bool = True

    temp_prefix: str = "zip"
    temp_suffix: str = ".zip"
    temp_dir: Optional[str] = None


class AppConfig(BaseModel):
    schema_version: str = "1.0"
    output_dir: Optional[str] = None
    archive: ArchiveCfg = ArchiveCfg()


def load_config(path: Optional[str]) -> AppConfig:
    if not path:
        return AppConfig()
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    return AppConfig.model_validate(data or {})


def config_to_snapshot(cfg: AppConfig) -> Dict[str, Any]:
    return cfg.model_dump()
