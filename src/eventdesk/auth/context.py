"""Authentication context helpers."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class AuthContext:
    """How the current request passed the API key gate."""

    auth_type: Literal["api_key", "insecure_dev"]

    @property
    def is_insecure(self) -> bool:
        return self.auth_type == "insecure_dev"
