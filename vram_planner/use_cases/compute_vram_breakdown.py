import math
from typing import List, Optional, Sequence

from vram_planner.entities.configuration import ServingParameters
from vram_planner.entities.estimate import Estimate
from vram_planner.entities.model_spec import ModelSpec
from vram_planner.entities.vram_breakdown import VRAMBreakdown
from vram_planner.frameworks_drivers.config import HeuristicsConfig
from vram_planner.shared.errors import ComputationError
from vram_planner.shared.logger import Logger
from vram_planner.shared.model_memory_estimator import ModelMemoryEstimator

logger = Logger.get(__name__)


class VRAMBreakdownCalculator:
    """Splits total VRAM into weights, KV cache, activations, overhead and what is left."""

    def __init__(self, heuristics: Optional[HeuristicsConfig] = None):
        self.heuristics = heuristics or HeuristicsConfig()

    def compute(
        self,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
        parameters: Optional[ServingParameters] = None,
    ) -> Estimate[VRAMBreakdown]:
        """
        Compute the VRAM breakdown for a set of models sharing the given memory.

        Args:
            total_vram_gb: Memory to account for, in GB
            models: Models loaded together
            parameters: Candidate serving parameters (defaults from config when absent)

        Returns:
            An exact estimate, a degraded estimate built from model sizes when the
            heuristics fail, or an unavailable estimate when there is nothing to size.
        """
        if not models:
            return Estimate[VRAMBreakdown].unavailable("No models selected")
        if total_vram_gb is None or not math.isfinite(total_vram_gb) or total_vram_gb <= 0:
            return Estimate[VRAMBreakdown].unavailable("No accelerator memory selected")

        max_num_seqs = parameters.max_num_seqs if parameters else self.heuristics.default_max_num_seqs
        max_model_len = parameters.max_model_len if parameters else self.heuristics.default_max_model_len

        try:
            breakdown = self._compute_components(total_vram_gb, models, max_num_seqs, max_model_len)
        except (ComputationError, ArithmeticError, ValueError, TypeError) as e:
            logger.warning(f"VRAM breakdown failed, using size-based estimate: {e}")
            return Estimate[VRAMBreakdown].degraded(
                self.fallback(total_vram_gb, models),
                f"Heuristic breakdown failed ({e}); estimated from model sizes",
            )
        return Estimate[VRAMBreakdown].exact(breakdown)

    def _compute_components(
        self,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
        max_num_seqs: int,
        max_model_len: int,
    ) -> VRAMBreakdown:
        model_weights = 0.0
        kv_cache = 0.0
        for model in models:
            parameters = model.resolved_parameters
            model_weights += ModelMemoryEstimator.weight_memory_gb(parameters, model.quantization)
            kv_cache += ModelMemoryEstimator.kv_cache_memory_gb(
                parameters,
                max_num_seqs,
                max_model_len,
                layer_hint=model.num_layers,
            )

        activations = model_weights * self.heuristics.activation_factor
        system_overhead = total_vram_gb * self.heuristics.overhead_factor

        components = [model_weights, kv_cache, activations, system_overhead]
        if not all(math.isfinite(value) and value >= 0 for value in components):
            raise ComputationError(f"Invalid breakdown components: {components}")

        return VRAMBreakdown.from_components(total_vram_gb, *components)

    def fallback(self, total_vram_gb: float, models: Sequence[ModelSpec]) -> VRAMBreakdown:
        """Conservative estimate from the declared model sizes and fixed ratios only."""
        sizes: List[float] = [model.size_gb for model in models if math.isfinite(model.size_gb)]
        model_memory = sum(sizes)
        return VRAMBreakdown.from_components(
            total_vram_gb,
            model_memory,
            model_memory * self.heuristics.fallback_kv_factor,
            model_memory * self.heuristics.activation_factor,
            total_vram_gb * self.heuristics.overhead_factor,
        )
