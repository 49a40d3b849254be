"""Global configuration management (~/.codecombat_py.global)."""

import json
from pathlib import Path
from typing import Optional
from dataclasses import dataclass


DEFAULT_BASE_URL = "http://localhost:8080/api"
DEFAULT_POLL_INTERVAL = 10.0


@dataclass
class GlobalConfig:
    """
    Global configuration storing the API location and user credentials.
    Stored at ~/.codecombat_py.global
    """

    base_url: str = DEFAULT_BASE_URL
    username: str = ""
    token: str = ""
    poll_interval: float = DEFAULT_POLL_INTERVAL

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "GlobalConfig":
        """Load global config from file."""
        if path is None:
            path = cls.default_path()

        if not path.exists():
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
                return cls(
                    base_url=data.get("base_url") or DEFAULT_BASE_URL,
                    username=data.get("username", ""),
                    token=data.get("token", ""),
                    poll_interval=float(
                        data.get("poll_interval", DEFAULT_POLL_INTERVAL)
                    ),
                )
        except (json.JSONDecodeError, IOError, TypeError, ValueError):
            return cls()

    def save(self, path: Optional[Path] = None) -> None:
        """Save global config to file."""
        if path is None:
            path = self.default_path()

        data = {
            "base_url": self.base_url,
            "username": self.username,
            "token": self.token,
            "poll_interval": self.poll_interval,
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def has_credentials(self) -> bool:
        """Check if a token is stored."""
        return bool(self.token)

    def bearer_token(self) -> Optional[str]:
        """Credential provider handed to the API client."""
        return self.token or None

    @staticmethod
    def default_path() -> Path:
        return Path.home() / ".codecombat_py.global"
