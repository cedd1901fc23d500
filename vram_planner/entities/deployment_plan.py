from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .configuration import Configuration, ConfigurationType, WorkloadType
from .estimate import Estimate
from .quantization import QuantizationRecommendation
from .vram_breakdown import VRAMBreakdown

MemoryPressureLevel = Literal["unknown", "low", "moderate", "high", "critical"]


class ConfigurationHealth(BaseModel):
    status: Literal["healthy", "warning", "critical"] = "healthy"
    issues: List[str] = Field(default_factory=list)


class DeploymentPlan(BaseModel):
    """Everything the planner derives from one inventory/model selection."""
    has_valid_configuration: bool
    total_vram_gb: float
    total_accelerator_count: int
    accelerator_names: List[str] = Field(default_factory=list)
    estimated_cost_per_hour: float = 0.0  # Advisory, USD
    workload: WorkloadType = "serving"
    configurations: List[Configuration] = Field(default_factory=list)
    recommended_strategy: Optional[ConfigurationType] = None  # None when no configuration is viable
    vram_breakdown: Estimate[VRAMBreakdown]
    quantization_recommendations: List[QuantizationRecommendation] = Field(default_factory=list)
    memory_pressure: MemoryPressureLevel = "unknown"
    health: ConfigurationHealth = Field(default_factory=ConfigurationHealth)
    caveats: List[str] = Field(default_factory=list)
