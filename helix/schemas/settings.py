"""System settings schemas."""

from pydantic import BaseModel, Field, field_validator


class SettingsUpdate(BaseModel):
    """Bulk upsert; values are stored as strings."""
    settings: dict[str, str | int | float | bool | None] = Field(min_length=1)

    @field_validator("settings")
    @classmethod
    def check_keys(cls, value: dict) -> dict:
        for key in value:
            if not key or len(key) > 100:
                raise ValueError("Setting keys must be 1-100 characters")
        return value
