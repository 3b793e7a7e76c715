from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .scanner import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    max_depth: int = DEFAULT_MAX_DEPTH
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    format: str = "yaml-compact"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    os_override: Optional[str] = None

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        if load_env_file:
            load_dotenv()
        raw_depth = os.getenv("WORKBENCH_MAX_DEPTH")
        max_depth = DEFAULT_MAX_DEPTH
        if raw_depth:
            try:
                max_depth = int(raw_depth)
            except ValueError:
                logger.warning("Ignoring invalid WORKBENCH_MAX_DEPTH=%r", raw_depth)
        return cls(
            max_depth=max_depth,
            provider=os.getenv("WORKBENCH_PROVIDER", cls.provider),
            model=os.getenv("WORKBENCH_MODEL", cls.model),
            format=os.getenv("WORKBENCH_FORMAT", cls.format),
            api_key=os.getenv("WORKBENCH_API_KEY") or None,
            base_url=os.getenv("WORKBENCH_BASE_URL") or None,
            os_override=os.getenv("WORKBENCH_OS") or None,
        )

    def to_public_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["api_key"] = "***" if self.api_key else None
        return data
