"""
Configuration management for imagesort.
"""

from pathlib import Path
from typing import Dict, Optional

import yaml

from .constants import PROGRAM, get_logger


class Config:
    """Manages configuration file for storing user preferences."""

    def __init__(self, config_path: Optional[Path] = None):
        # Default config location: ~/.<PROGRAM>/config.yml
        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = Path.home() / f".{PROGRAM}" / "config.yml"
        self.program_root = self.config_path.parent
        self.data = self._load_config()

    def _load_config(self) -> Dict:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            get_logger().warning(f"Could not load config: {e}")
            return {}

        if not isinstance(data, dict):
            get_logger().warning(f"Ignoring malformed config: {self.config_path}")
            return {}
        return data

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            self.program_root.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(self.data, f, default_flow_style=False)
        except OSError as e:
            get_logger().error(f"Could not save config: {e}")

    def get_last_source(self) -> Optional[str]:
        """Get the last used source directory."""
        return self.data.get('last_source')

    def get_last_target(self) -> Optional[str]:
        """Get the last used target directory."""
        return self.data.get('last_target')

    def get_sort_by(self) -> Optional[str]:
        return self.data.get('sort_by')

    def get_structure(self) -> Optional[str]:
        return self.data.get('structure')

    def update_paths(self, source: str, target: str) -> None:
        """Update and save the last used paths."""
        self.data['last_source'] = source
        self.data['last_target'] = target
        self.save_config()

    def update_sorting(self, sort_by: str, structure: Optional[str]) -> None:
        """Update and save the sort key and structure template."""
        self.data['sort_by'] = sort_by
        if structure is not None:
            self.data['structure'] = structure
        self.save_config()
