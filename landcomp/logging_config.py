"""
로깅 초기화 유틸리티

- setup_logging(): config/logging.yml 로깅 설정을 불러오고, 없으면 기본 로깅으로 대체
"""
from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML

from landcomp.settings import ROOT_DIR, settings

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _load_yaml(path: Path) -> Dict[str, Any]:
    yaml = YAML(typ="safe")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.load(f) or {}
    return data if isinstance(data, dict) else {}


def setup_logging(config_path: Optional[str | Path] = None) -> None:
    """로깅 설정을 초기화합니다.

    - 프로젝트 루트 기준 `config/logging.yml` 파일이 있으면 이를 로드해 로깅을 구성합니다.
    - 없거나 비어 있으면 settings.log_level 기반 기본 로깅 설정으로 대체합니다.

    Args:
        config_path: 로깅 YAML 파일 경로 (None이면 settings.logging_config_path 사용)
    """
    path = Path(config_path or settings.logging_config_path)
    if not path.is_absolute():
        path = ROOT_DIR / path

    if path.exists():
        data = _load_yaml(path)
        if data:
            logging.config.dictConfig(data)
            return

    logging.basicConfig(level=settings.log_level.upper(), format=DEFAULT_FORMAT)
