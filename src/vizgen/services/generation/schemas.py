"""Generation request model shared by the HTTP layer and the orchestrator."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vizgen.models.generation_job import Modality


class GenerateRequest(BaseModel):
    """A user's request to generate an image or a video.

    Field names are snake_case; camelCase aliases are accepted as well.
    Image-only and video-only parameters are ignored by the other modality.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    modality: Modality = Field(..., description="image or video")
    prompt: str = Field(..., min_length=1, max_length=1000)
    size: str | None = Field(default=None, description="Size preset or WIDTHxHEIGHT")
    style: str | None = Field(default=None, max_length=255)
    style_id: int | None = None
    reference_image: str | None = None
    template_id: int | None = None
    watermark: bool | None = None

    # Image parameters
    quality: str | None = None
    response_format: Literal["url", "b64_json"] | None = None
    seed: int | None = Field(default=None, ge=-1, le=2147483647)
    guidance_scale: float | None = Field(default=None, ge=1, le=10)

    # Video parameters
    model: str | None = None
    resolution: Literal["480p", "720p", "1080p"] | None = None
    duration: int | None = Field(default=None, ge=5, le=10)
    ratio: str | None = None
    fps: int | None = Field(default=None, ge=1, le=60)
    camera_fixed: bool | None = None
    cfg_scale: float | None = Field(default=None, ge=1, le=20)
    count: int | None = Field(default=None, ge=1, le=4)
    first_frame_image: str | None = None
    last_frame_image: str | None = None
    hd: bool | None = None

    def generation_params(self) -> dict:
        """Modality-specific parameter bag persisted on the job."""
        if self.modality == Modality.IMAGE:
            params = {
                "quality": self.quality,
                "response_format": self.response_format,
                "seed": self.seed,
                "guidance_scale": self.guidance_scale,
            }
        else:
            params = {
                "model": self.model,
                "resolution": self.resolution,
                "duration": self.duration,
                "ratio": self.ratio,
                "fps": self.fps,
                "camera_fixed": self.camera_fixed,
                "cfg_scale": self.cfg_scale,
                "count": self.count,
                "first_frame_image": self.first_frame_image,
                "last_frame_image": self.last_frame_image,
                "hd": self.hd,
            }
        params["watermark"] = self.watermark
        return params
