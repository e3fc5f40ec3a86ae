# GTD configuration
# Override paths and limits via gtd.yaml, environment variables or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "gtd.yaml"


@dataclass
class Config:
    """Runtime configuration for the task store and the REST API."""

    # Storage
    db_path: str = "~/.local/share/gtd/gtd.db"               # REST API table
    storage_path: str = "~/.local/share/gtd/local_storage.db"  # client-side store
    storage_key: str = "gtd-tasks"

    # Display: "priority" or "manual"
    sort_mode: str = "priority"

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    rate_limit_requests: int = 100
    rate_limit_window_secs: float = 900.0  # 15 min
    seed_sample_data: bool = False

    log_level: str = "INFO"

    def apply_env(self):
        """Environment variables win over the file."""
        if os.environ.get("GTD_DB"):
            self.db_path = os.environ["GTD_DB"]
        if os.environ.get("GTD_STORAGE"):
            self.storage_path = os.environ["GTD_STORAGE"]
        limit = os.environ.get("GTD_RATE_LIMIT")
        if limit:
            count, _, window = limit.partition("/")
            try:
                self.rate_limit_requests = int(count)
                if window:
                    self.rate_limit_window_secs = float(window)
            except ValueError:
                raise ValueError(f"GTD_RATE_LIMIT must look like '100/900', got {limit!r}") from None

    def resolve_paths(self):
        """Expand ~ in storage paths."""
        self.db_path = str(Path(self.db_path).expanduser())
        self.storage_path = str(Path(self.storage_path).expanduser())

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML file, falling back to defaults."""
        path = path or os.environ.get("GTD_CONFIG")
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
                cfg = cls(**{k: v for k, v in data.items() if hasattr(cls, k)})
            except (OSError, yaml.YAMLError, TypeError, AttributeError):
                cfg = cls()
        else:
            cfg = cls()
        cfg.apply_env()
        cfg.resolve_paths()
        return cfg
