from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_UNITS_PER_SELECTION = 8
VRAM_COST_PER_GB_HOUR = 0.10  # Advisory list price, not a quote


class AcceleratorUnit(BaseModel):
    """A GPU type as picked from the catalog (or entered by hand when custom)."""
    name: str = Field(min_length=1)  # Identity, case-sensitive
    vram_gb: float = Field(gt=0)  # Memory capacity in GB
    custom: bool = False  # Entered by the user rather than taken from the catalog
    memory_bandwidth_gbps: Optional[float] = Field(default=None, gt=0)  # Declared memory bandwidth in GB/s

    @property
    def estimated_bandwidth_gbps(self) -> float:
        """Declared bandwidth, or a guess based on the memory class of the card."""
        if self.memory_bandwidth_gbps:
            return self.memory_bandwidth_gbps
        if self.vram_gb >= 80:
            return 3500.0  # H100/A100 class
        if self.vram_gb > 40:
            return 2000.0  # RTX 6000 class
        if self.vram_gb > 20:
            return 1000.0  # RTX 4090 class
        return 800.0


class AcceleratorSelection(BaseModel):
    """A number of identical units of one GPU type."""
    unit: AcceleratorUnit
    quantity: int = Field(ge=1, le=MAX_UNITS_PER_SELECTION)

    @property
    def vram_gb(self) -> float:
        return self.unit.vram_gb * self.quantity


class HardwareInventory(BaseModel):
    """The full set of GPUs a deployment may use."""
    selections: List[AcceleratorSelection] = Field(default_factory=list)

    @field_validator("selections")
    @classmethod
    def validate_unique_names(cls, v):
        names = [selection.unit.name for selection in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"accelerator names must be unique within an inventory: {', '.join(duplicates)}")
        return v

    @property
    def is_empty(self) -> bool:
        return not self.selections

    @property
    def total_vram_gb(self) -> float:
        return sum(selection.unit.vram_gb * selection.quantity for selection in self.selections)

    @property
    def total_accelerator_count(self) -> int:
        return sum(selection.quantity for selection in self.selections)

    @property
    def has_custom_units(self) -> bool:
        return any(selection.unit.custom for selection in self.selections)

    @property
    def unit_names(self) -> List[str]:
        return [selection.unit.name for selection in self.selections]

    @property
    def average_bandwidth_gbps(self) -> float:
        """Quantity-weighted average memory bandwidth across all units."""
        count = self.total_accelerator_count
        if count == 0:
            return 0.0
        total = sum(selection.unit.estimated_bandwidth_gbps * selection.quantity for selection in self.selections)
        return total / count

    @property
    def estimated_cost_per_hour(self) -> float:
        return sum(selection.unit.vram_gb * VRAM_COST_PER_GB_HOUR * selection.quantity for selection in self.selections)
