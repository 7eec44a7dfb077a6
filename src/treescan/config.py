"""Configuration management for treescan using platformdirs."""

import json
import logging
from pathlib import Path
from typing import List, Optional

from platformdirs import user_config_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ScanOptions
from .paths import PathResolver

logger = logging.getLogger(__name__)


class ScanSettings(BaseSettings):
    """Scan defaults, overridable through ``TREESCAN_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TREESCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables
    )

    max_file_size: int = Field(default=1048576, gt=0, description="Largest file read, in bytes")
    exclude_patterns: List[str] = Field(
        default=[
            'node_modules/**', '.git/**', 'dist/**', 'build/**', 'out/**',
            '.vscode/**', '**/*.log',
        ]
    )
    use_gitignore: bool = Field(default=False, description="Apply .gitignore rules")
    use_vscodeignore: bool = Field(default=False, description="Apply .vscodeignore rules")
    include_dependencies: bool = Field(default=False, description="Collect imports per file")

    def to_scan_options(self) -> ScanOptions:
        return ScanOptions(
            max_file_size_bytes=self.max_file_size,
            exclude_patterns=tuple(self.exclude_patterns),
            use_primary_ignore_file=self.use_gitignore,
            use_secondary_ignore_file=self.use_vscodeignore,
            include_dependencies=self.include_dependencies,
        )


class ConfigManager:
    """Manages the registry of workspace roots."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir or user_config_dir("treescan", "treescan"))

        # Create directories if they don't exist
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.roots_file = self.config_dir / "roots.json"

        self.settings = ScanSettings()
        self.roots: List[Path] = self._load_roots()

    def _load_roots(self) -> List[Path]:
        """Load workspace roots from the registry file."""
        if not self.roots_file.exists():
            return []

        try:
            with open(self.roots_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [Path(p) for p in data.get("roots", [])]
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable root registry {self.roots_file}: {e}")
            return []

    def save_roots(self):
        """Save workspace roots to the registry file."""
        with open(self.roots_file, 'w', encoding='utf-8') as f:
            json.dump({"roots": [str(p) for p in self.roots]}, f, indent=2)

    def add_root(self, path: Path) -> Path:
        """Register a workspace root."""
        path = path.resolve()

        if path not in self.roots:
            self.roots.append(path)
            self.save_roots()
        return path

    def remove_root(self, path: Path) -> bool:
        """Unregister a workspace root."""
        path = path.resolve()
        if path in self.roots:
            self.roots.remove(path)
            self.save_roots()
            return True
        return False

    def list_roots(self) -> List[Path]:
        return list(self.roots)

    def cleanup_stale_roots(self) -> int:
        """Remove roots that no longer exist on disk."""
        stale = [p for p in self.roots if not p.is_dir()]

        for path in stale:
            self.roots.remove(path)

        if stale:
            self.save_roots()

        return len(stale)

    def resolver(self, default_root: Optional[Path] = None) -> PathResolver:
        """PathResolver over the registered roots."""
        return PathResolver(self.roots, default_root=default_root)
