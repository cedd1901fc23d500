from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .vram_breakdown import VRAMBreakdown

ConfigurationType = Literal["throughput", "latency", "balanced"]
CONFIGURATION_TYPES: tuple = ("throughput", "latency", "balanced")

WorkloadType = Literal["chat", "completion", "code-generation", "batch", "serving", "embedding"]


class ServingParameters(BaseModel):
    """Candidate vLLM engine parameters evaluated against the memory budget."""
    gpu_memory_utilization: float = Field(0.9, gt=0, le=1, description="Fraction of VRAM vLLM may claim")
    max_model_len: int = Field(2048, ge=1, description="Maximum sequence length in tokens")
    max_num_seqs: int = Field(16, ge=1, description="Maximum number of concurrent sequences")
    tensor_parallel_size: Optional[int] = Field(None, ge=1, description="Number of GPUs for tensor parallelism")
    swap_space: Optional[int] = Field(None, ge=0, description="CPU swap space per GPU in GiB")


class ConfigurationParameter(BaseModel):
    name: str  # Command-line flag, e.g. "--max-num-seqs"
    value: str
    explanation: str


class ValidationResult(BaseModel):
    """Outcome of checking a set of engine parameters; errors make the command unusable."""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ConfigurationMetrics(BaseModel):
    """Coarse, advisory performance estimates rendered for display."""
    throughput: str = "N/A"
    latency: str = "N/A"
    memory_usage: str = "N/A"


class Configuration(BaseModel):
    """A complete deployment configuration for one optimization profile."""
    type: ConfigurationType
    title: str
    description: str
    parameters: List[ConfigurationParameter] = Field(default_factory=list)
    metrics: ConfigurationMetrics = Field(default_factory=ConfigurationMetrics)
    command: str
    considerations: List[str] = Field(default_factory=list)
    degraded: bool = False  # True when the fixed fallback was used
    fallback_reason: Optional[str] = None
    breakdown: Optional[VRAMBreakdown] = None  # Memory accounting at the chosen parameters, against the utilization budget
    validation: ValidationResult = Field(default_factory=ValidationResult)

    def parameter(self, name: str) -> Optional[ConfigurationParameter]:
        """Look up a parameter by flag name, with or without the leading dashes."""
        flag = name if name.startswith("--") else f"--{name}"
        for parameter in self.parameters:
            if parameter.name == flag:
                return parameter
        return None
