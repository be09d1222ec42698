"""Pydantic models and data schemas for carousel generation.

Request models accept the camelCase keys clients send (``textColor``,
``uploadToDrive`` ...) while exposing snake_case attributes to the rest
of the package. Result models serialize back to camelCase through
``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from . import config

TextAlign = Literal["left", "center", "right"]


class SlideSpec(BaseModel):
    """Text content and layout overrides for one slide.

    Every layout field is optional; unset fields are resolved by the
    overlay composer from the canvas size.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    title: Optional[str] = None
    subtitle: Optional[str] = None
    text_color: str = Field("#FFFFFF", alias="textColor")
    font_family: str = Field("Arial", alias="fontFamily")
    title_size: Optional[float] = Field(None, alias="titleSize", gt=0)
    subtitle_size: Optional[float] = Field(None, alias="subtitleSize", gt=0)
    title_x: Optional[float] = Field(None, alias="titleX")
    title_y: Optional[float] = Field(None, alias="titleY")
    subtitle_x: Optional[float] = Field(None, alias="subtitleX")
    subtitle_y: Optional[float] = Field(None, alias="subtitleY")
    max_title_width: Optional[float] = Field(None, alias="maxTitleWidth", gt=0)
    max_subtitle_width: Optional[float] = Field(None, alias="maxSubtitleWidth", gt=0)
    text_align: TextAlign = Field("center", alias="textAlign")

    @field_validator("text_color", "font_family", "text_align", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info: ValidationInfo):
        """Treat a null or empty styling value as unset."""
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return value

    @property
    def has_title(self) -> bool:
        return bool(self.title and self.title.strip())

    @property
    def has_subtitle(self) -> bool:
        return bool(self.subtitle and self.subtitle.strip())

    @property
    def has_text(self) -> bool:
        return self.has_title or self.has_subtitle


class CarouselRequest(BaseModel):
    """A validated batch request. Built by ``orchestrator.parse_request``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    backgrounds: List[str]
    slides: List[SlideSpec]
    width: int = config.DEFAULT_DIMENSION
    height: int = config.DEFAULT_DIMENSION
    upload_to_drive: bool = Field(False, alias="uploadToDrive")
    drive_token: Optional[str] = Field(None, alias="driveToken")
    drive_folder_id: Optional[str] = Field(None, alias="driveFolderId")
    return_urls: bool = Field(False, alias="returnUrls")


class SlideSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    base64: str
    filename: str
    success: Literal[True] = True


class SlideFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    error: str
    filename: str
    success: Literal[False] = False


class UploadResult(BaseModel):
    """Outcome of uploading one slide to Drive."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool
    file_id: Optional[str] = Field(None, alias="fileId")
    web_view_link: Optional[str] = Field(None, alias="webViewLink")
    web_content_link: Optional[str] = Field(None, alias="webContentLink")
    error: Optional[str] = None

    @property
    def url(self) -> Optional[str]:
        return self.web_content_link or self.web_view_link


class Dimensions(BaseModel):
    width: int
    height: int


class CarouselStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_slides: int = Field(alias="totalSlides")
    successful: int
    failed: int
    generation_time_ms: int = Field(alias="generationTimeMs")
    dimensions: Dimensions
