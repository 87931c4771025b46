"""Session data models"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class Session:
    """Isolated per-request namespace"""
    session_id: str
    path: Path
    created_at: datetime

    @property
    def icons_dir(self) -> Path:
        return self.path / "icons"

    @property
    def temp_dir(self) -> Path:
        return self.path / "temp"
