"""Local configuration management (.codecombat_py.local)."""

import json
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from ..client.models import DEFAULT_LANGUAGE, Language


CONFIG_NAME = ".codecombat_py.local"


@dataclass
class LocalConfig:
    """
    Local configuration for contest-specific settings.
    Stored at .codecombat_py.local in project directory.
    Stores only the default language.
    """

    default_language: str = DEFAULT_LANGUAGE.value

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Optional["LocalConfig"]:
        """
        Load local config from file.
        If path is not specified, searches upward from current directory.
        """
        if path is None:
            path = cls.find_config()

        if path is None or not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
                return cls(
                    default_language=data.get(
                        "default_language", DEFAULT_LANGUAGE.value
                    )
                )
        except (json.JSONDecodeError, IOError, TypeError, AttributeError):
            return None

    def save(self, path: Optional[Path] = None) -> None:
        """Save local config to file."""
        if path is None:
            path = Path.cwd() / CONFIG_NAME

        data = {"default_language": self.default_language}

        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    @staticmethod
    def find_config() -> Optional[Path]:
        """
        Search for .codecombat_py.local starting from current directory,
        walking up to root.
        """
        current = Path.cwd()

        while True:
            config_path = current / CONFIG_NAME
            if config_path.exists():
                return config_path

            # Check if we've reached the root
            if current == current.parent:
                return None

            current = current.parent

    def get_language(self) -> Language:
        """Get the default language, falling back to Java."""
        return Language.parse(self.default_language) or DEFAULT_LANGUAGE
