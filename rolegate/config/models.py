from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Literal


class SourceSettings(BaseModel):
    path: str = Field(default="coffee-platform-roles.xml", min_length=1)
    format: Literal["auto", "xml", "yaml"] = "auto"
    encoding: str = "utf-8"

    @field_validator("path")
    @classmethod
    def path_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("source path must not be blank")
        return v


class AccessSettings(BaseModel):
    """Access scale used by queries that compare levels."""

    no_access_level: str = Field(default="no", min_length=1)
    level_order: list[str] = Field(
        default_factory=lambda: ["no", "view-only", "partial", "full"],
        min_length=1,
    )

    @field_validator("level_order")
    @classmethod
    def unique_levels(cls, v: list[str]) -> list[str]:
        dupes = sorted({level for level in v if v.count(level) > 1})
        if dupes:
            raise ValueError(f"level_order repeats: {', '.join(dupes)}")
        return v

    @model_validator(mode="after")
    def no_access_level_is_ordered(self) -> "AccessSettings":
        if self.no_access_level not in self.level_order:
            raise ValueError(
                f"no_access_level '{self.no_access_level}' is missing from level_order"
            )
        return self


class RolegateSettings(BaseModel):
    source: SourceSettings = Field(default_factory=SourceSettings)
    access: AccessSettings = Field(default_factory=AccessSettings)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
