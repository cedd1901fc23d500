from typing import List, Optional, Sequence

from vram_planner.entities.model_spec import ModelSpec
from vram_planner.entities.quantization import QuantizationInfo, QuantizationRecommendation
from vram_planner.frameworks_drivers.config import AdvisorConfig
from vram_planner.shared.errors import ComputationError
from vram_planner.shared.logger import Logger
from vram_planner.shared.model_memory_estimator import ModelMemoryEstimator
from vram_planner.shared.quantization_table import QuantizationTable

logger = Logger.get(__name__)


class QuantizationAdvisor:
    """Proposes lower-memory quantization formats for models under memory pressure."""

    def __init__(self, config: Optional[AdvisorConfig] = None):
        self.config = config or AdvisorConfig()

    def recommend(
        self,
        total_vram_gb: float,
        model: ModelSpec,
        memory_deficit_gb: float = 0.0,
    ) -> Optional[QuantizationRecommendation]:
        """
        Recommend a format for one model.

        Args:
            total_vram_gb: Total accelerator memory in GB
            model: The model to check
            memory_deficit_gb: Memory the current plan is short by, added to the pressure

        Returns:
            A recommendation, or None when the model fits comfortably or no
            format strictly improves on the current one, or when the
            current format is not one the table knows
        """
        if not total_vram_gb or total_vram_gb <= 0:
            return None
        if not QuantizationTable.is_supported(model.quantization):
            logger.debug(f"Skipping advice for {model.name}: unknown quantization '{model.quantization}'")
            return None

        parameters = model.resolved_parameters
        current = QuantizationTable.lookup(model.quantization)
        current_weights = ModelMemoryEstimator.weight_memory_gb(parameters, current.format)
        pressure = (current_weights + max(0.0, memory_deficit_gb)) / total_vram_gb

        if pressure <= self.config.target_utilization:
            return None

        candidate = self._best_candidate(current)
        if candidate is None:
            logger.debug(f"No format dominates {current.format} for {model.name}")
            return None

        recommended_weights = ModelMemoryEstimator.weight_memory_gb(parameters, candidate.format)
        return QuantizationRecommendation(
            model_name=model.name,
            current_format=current.format,
            recommended_format=candidate.format,
            memory_savings_gb=max(0.0, current_weights - recommended_weights),
            quality_impact=QuantizationTable.quality_impact(candidate.format, parameters),
            reason=QuantizationTable.describe_recommendation(candidate.format, parameters),
            memory_pressure=round(pressure, 4),
        )

    def _best_candidate(self, current: QuantizationInfo) -> Optional[QuantizationInfo]:
        candidates = [
            info
            for info in QuantizationTable.FORMATS.values()
            if info.memory_factor < current.memory_factor
            and info.quality_loss <= self.config.quality_tolerance
        ]
        if not candidates:
            return None
        # sorted() is stable, so equal entries keep table order
        return sorted(candidates, key=lambda info: (info.memory_factor, info.quality_loss))[0]

    def recommend_all(
        self,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
        memory_deficit_gb: float = 0.0,
    ) -> List[QuantizationRecommendation]:
        """Recommendations for every model that needs one; a failing model is skipped."""
        recommendations = []
        for model in models:
            try:
                recommendation = self.recommend(total_vram_gb, model, memory_deficit_gb)
            except (ComputationError, ArithmeticError, ValueError) as e:
                logger.warning(f"Quantization advice failed for {model.name}: {e}")
                continue
            if recommendation is not None:
                recommendations.append(recommendation)
        return recommendations
