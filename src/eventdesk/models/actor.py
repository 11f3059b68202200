"""Actor model - the person performing a request."""

from typing import Optional

from pydantic import BaseModel


class Actor(BaseModel):
    """Represents the person on whose behalf an operation runs."""

    id: str
    display_name: Optional[str] = None

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Actor):
            return False
        return self.id == other.id
