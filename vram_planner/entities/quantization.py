from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuantizationInfo(BaseModel):
    """Memory and quality characteristics of a quantization format."""
    model_config = ConfigDict(frozen=True)

    format: str
    bits_per_param: int
    bytes_per_param: float
    memory_factor: float  # Relative to fp32, so fp16 is 0.5
    quality_loss: float  # Estimated fraction of quality lost
    overhead: float = 0.0  # Format-specific storage overhead (scales, zero points)
    description: str = ""


class QualityImpact(BaseModel):
    """Expected quality impact of running a model in a given format."""
    format: str
    quality_loss: float
    severity: Literal["low", "medium", "high"]
    description: str


class QuantizationRecommendation(BaseModel):
    """Suggestion to move a model to a lower-memory format."""
    model_name: str
    current_format: str
    recommended_format: str
    memory_savings_gb: float = Field(ge=0)
    quality_impact: QualityImpact
    reason: str
    memory_pressure: Optional[float] = None  # Weights (plus any deficit) divided by total VRAM
