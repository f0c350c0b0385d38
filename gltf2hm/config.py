"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from GLTF2HM_* environment variables."""

    # Heightmap
    resolution: int = Field(default=2048, ge=1, description="Heightmap resolution (square)")
    smooth: float = Field(default=0.0, ge=0.0, description="Smoothing tolerance, 0 disables")
    flip_x: bool = Field(default=False, description="Flip the heightmap on the X axis")
    flip_y: bool = Field(default=False, description="Flip the heightmap on the Y axis")
    interpolate: bool = Field(default=False, description="Interpolate gaps along rows and columns")

    # Outputs
    export_terrain: bool = Field(default=True, description="Write BeamNG .ter file")
    export_heightmap: bool = Field(default=True, description="Write preview .png file")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    class Config:
        env_prefix = "GLTF2HM_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
