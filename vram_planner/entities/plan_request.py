from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .accelerator import HardwareInventory
from .configuration import WorkloadType
from .model_spec import ModelSpec


class PlanRequest(BaseModel):
    """Body of every planning endpoint: the GPUs on hand and the models to serve."""
    inventory: HardwareInventory = Field(default_factory=HardwareInventory)
    models: List[ModelSpec] = Field(default_factory=list)
    workload: WorkloadType = "serving"


class ValidationRequest(BaseModel):
    """Engine parameters to check, keyed by flag name."""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    accelerator_count: Optional[int] = Field(default=None, ge=1)
