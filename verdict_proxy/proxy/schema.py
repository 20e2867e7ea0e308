from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerateRequest(BaseModel):
    """Generate request body, forwarded to the backend unchanged"""

    # Backend options (options, format, system, ...) pass through
    model_config = ConfigDict(extra="allow")

    model: str = Field(..., description="Backend model identifier")
    prompt: str = Field(..., description="Prompt text sent with the images")
    images: list[str] = Field(..., min_length=1, description="Base64-encoded images")
    stream: bool = Field(False, description="Must be false; streamed responses are not relayed")

    @field_validator("model", "prompt")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate that required string fields are not empty"""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("images")
    @classmethod
    def validate_images(cls, v: list[str]) -> list[str]:
        if any(not image for image in v):
            raise ValueError("Images must be non-empty base64 strings")
        return v

    @field_validator("stream")
    @classmethod
    def validate_stream(cls, v: bool) -> bool:
        if v:
            raise ValueError("Streaming is not supported by the proxy")
        return v


class GenerateResponse(BaseModel):
    """Extracted model output"""

    response: Any = Field(..., description="Model output extracted from the backend payload")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error summary")
    details: Any = Field(None, description="Backend status body or transport error")


class ProxyHealthResponse(BaseModel):
    """Proxy health response"""

    status: str = Field(..., description="Service status")
    queue_running: bool = Field(..., description="Whether the queue worker is alive")
    queue_depth: int = Field(..., description="Tasks admitted and not yet finished")
    backend_url: str = Field(..., description="Backend generate endpoint")
