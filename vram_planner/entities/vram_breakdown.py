from pydantic import BaseModel, Field


class VRAMBreakdown(BaseModel):
    """
    Accounting of total accelerator memory, all values in GB.

    ``available`` is the residual and never negative. When the consumers need
    more than the total, ``available`` is 0 and the shortfall is carried in
    ``deficit_gb``, so ``used_gb + available == total_vram_gb + deficit_gb``
    always holds.
    """
    total_vram_gb: float = Field(ge=0)
    model_weights: float = Field(ge=0)
    kv_cache: float = Field(ge=0)
    activations: float = Field(ge=0)
    system_overhead: float = Field(ge=0)
    available: float = Field(ge=0)
    deficit_gb: float = Field(default=0.0, ge=0)

    @property
    def used_gb(self) -> float:
        return self.model_weights + self.kv_cache + self.activations + self.system_overhead

    @property
    def fits(self) -> bool:
        return self.deficit_gb == 0

    @property
    def available_fraction(self) -> float:
        if self.total_vram_gb <= 0:
            return 0.0
        return self.available / self.total_vram_gb

    @classmethod
    def from_components(
        cls,
        total_vram_gb: float,
        model_weights: float,
        kv_cache: float,
        activations: float,
        system_overhead: float,
    ) -> "VRAMBreakdown":
        used = model_weights + kv_cache + activations + system_overhead
        return cls(
            total_vram_gb=total_vram_gb,
            model_weights=model_weights,
            kv_cache=kv_cache,
            activations=activations,
            system_overhead=system_overhead,
            available=max(0.0, total_vram_gb - used),
            deficit_gb=max(0.0, used - total_vram_gb),
        )
