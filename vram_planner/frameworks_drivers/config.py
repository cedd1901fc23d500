import json
from pathlib import Path

from pydantic import BaseModel, Field

from vram_planner.shared.command_formatter import DEFAULT_ENTRYPOINT


class HeuristicsConfig(BaseModel):
    """Heuristic factors used by the VRAM breakdown.

    Attributes:
        activation_factor: Activation memory as a fraction of model weights.
        overhead_factor: System overhead (CUDA context, allocator, graphs) as a fraction of total VRAM.
        default_max_num_seqs: Concurrent sequences assumed when none are chosen yet.
        default_max_model_len: Sequence length assumed when none is chosen yet.
        fallback_kv_factor: KV cache as a fraction of model size in the degraded estimate.
    """

    activation_factor: float = Field(0.15, ge=0, description="Activation memory as a fraction of model weights")
    overhead_factor: float = Field(0.08, ge=0, lt=1, description="System overhead as a fraction of total VRAM")
    default_max_num_seqs: int = Field(16, ge=1, description="Concurrent sequences assumed when none are chosen")
    default_max_model_len: int = Field(2048, ge=1, description="Sequence length assumed when none is chosen")
    fallback_kv_factor: float = Field(0.3, ge=0, description="KV cache as a fraction of model size in the degraded estimate")


class AdvisorConfig(BaseModel):
    """Configuration for quantization recommendations.

    Attributes:
        target_utilization: Memory pressure above which a lower-memory format is proposed.
        quality_tolerance: Highest acceptable estimated quality loss for a proposed format.
    """

    target_utilization: float = Field(0.85, gt=0, le=1, description="Memory pressure above which a lower-memory format is proposed")
    quality_tolerance: float = Field(0.05, ge=0, le=1, description="Highest acceptable estimated quality loss")


class CommandConfig(BaseModel):
    """Configuration for generated launch commands.

    Attributes:
        entrypoint: Command prefix placed before the engine flags.
    """

    entrypoint: str = Field(DEFAULT_ENTRYPOINT, min_length=1, description="Command prefix placed before the engine flags")


class CacheConfig(BaseModel):
    """Configuration for plan memoization.

    Attributes:
        enabled: Whether computed plans are memoized by input digest.
    """

    enabled: bool = Field(True, description="Whether computed plans are memoized by input digest")


class ServerConfig(BaseModel):
    """Configuration for the HTTP server.

    Attributes:
        host: Host for the HTTP server.
        port: Port for the HTTP server.
    """

    host: str = Field("0.0.0.0", description="Host for the HTTP server")
    port: int = Field(8000, description="Port for the HTTP server")


class Config(BaseModel):
    """Main configuration class.

    Attributes:
        heuristics: Heuristic factors for the VRAM breakdown.
        advisor: Quantization advisor thresholds.
        command: Launch command settings.
        cache: Plan memoization settings.
        server: HTTP server settings.
    """

    heuristics: HeuristicsConfig = Field(default_factory=HeuristicsConfig)
    advisor: AdvisorConfig = Field(default_factory=AdvisorConfig)
    command: CommandConfig = Field(default_factory=CommandConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def load(cls, config_path: str = "config.json") -> "Config":
        """Load and validate configuration from JSON file."""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path) as f:
            data = json.load(f)

        return cls(**data)

    @classmethod
    def load_or_default(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file, or use defaults when the file does not exist."""
        if not Path(config_path).exists():
            return cls()
        return cls.load(config_path)
