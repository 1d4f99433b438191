"""
Records exchanged with the Bot API.

Update payloads are kept opaque: only ``update_id`` is modelled, every
other key is preserved as an extra field.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .update_types import AllowedUpdateType


class Update(BaseModel):
    """A single incoming update."""

    model_config = ConfigDict(extra="allow", frozen=True)

    update_id: int = Field(..., description="Monotonically increasing sequence number")

    @property
    def payload(self) -> dict[str, Any]:
        """Every field of the update except ``update_id``."""
        return dict(self.model_extra or {})

    @property
    def update_type(self) -> AllowedUpdateType | None:
        """Category of the update, taken from the first known key present."""
        extra = self.model_extra or {}
        for update_type in AllowedUpdateType:
            if extra.get(update_type.value) is not None:
                return update_type
        return None

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a payload field by its API name."""
        return (self.model_extra or {}).get(key, default)


class User(BaseModel):
    """Identity record returned by ``getMe``."""

    model_config = ConfigDict(extra="allow")

    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None
