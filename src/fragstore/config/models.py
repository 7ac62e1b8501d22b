from typing import Literal

from pydantic import BaseModel, Field, field_validator

from fragstore.registry import FORMATS, parse_media_type


class BackendConfig(BaseModel):
    provider: Literal["memory", "sqlite"] = "memory"
    path: str = ".fragstore/fragments.db"


class MarkdownConfig(BaseModel):
    extensions: list[str] = Field(default_factory=lambda: ["fenced_code", "tables"])


class ImageConfig(BaseModel):
    jpeg_quality: int = Field(default=90, ge=1, le=100)
    webp_quality: int = Field(default=80, ge=1, le=100)
    webp_lossless: bool = False
    background: str = "#ffffff"


class ConversionConfig(BaseModel):
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
    max_image_pixels: int | None = Field(default=89_478_485, gt=0)


class FragstoreConfig(BaseModel):
    api_url: str = "http://localhost:8080"
    backend: BackendConfig = Field(default_factory=BackendConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    supported_types: list[str] = Field(default_factory=lambda: list(FORMATS))
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("supported_types")
    @classmethod
    def validate_supported_types(cls, v: list[str]) -> list[str]:
        normalized = []
        for t in v:
            media_type = parse_media_type(t)
            if media_type not in FORMATS:
                raise ValueError(f"unknown media type: {t}")
            normalized.append(media_type)
        if not normalized:
            raise ValueError("at least one media type must be supported")
        return normalized
