from typing import List, Optional, Sequence

from vram_planner.entities.accelerator import HardwareInventory
from vram_planner.entities.configuration import WorkloadType
from vram_planner.entities.deployment_plan import ConfigurationHealth, DeploymentPlan, MemoryPressureLevel
from vram_planner.entities.estimate import Estimate
from vram_planner.entities.model_spec import ModelSpec
from vram_planner.entities.vram_breakdown import VRAMBreakdown
from vram_planner.frameworks_drivers.calculation_cache import CalculationCache, input_digest
from vram_planner.frameworks_drivers.config import Config
from vram_planner.shared.logger import Logger
from vram_planner.use_cases.compute_vram_breakdown import VRAMBreakdownCalculator
from vram_planner.use_cases.optimize_configurations import ConfigurationOptimizer, recommend_strategy
from vram_planner.use_cases.recommend_quantization import QuantizationAdvisor

logger = Logger.get(__name__)

MAX_RECOMMENDED_ACCELERATORS = 16


def classify_memory_pressure(total_model_size_gb: float, total_vram_gb: float) -> MemoryPressureLevel:
    """Bucket the ratio of model size to VRAM."""
    if not total_vram_gb or total_vram_gb <= 0:
        return "unknown"
    ratio = total_model_size_gb / total_vram_gb
    if ratio > 0.9:
        return "critical"
    if ratio > 0.8:
        return "high"
    if ratio > 0.6:
        return "moderate"
    return "low"


def analyze_health(
    inventory: HardwareInventory,
    total_model_size_gb: float,
    memory_pressure: MemoryPressureLevel,
) -> ConfigurationHealth:
    issues: List[str] = []
    if memory_pressure == "critical":
        issues.append("Critical memory pressure detected")
    accelerator_count = inventory.total_accelerator_count
    if accelerator_count > MAX_RECOMMENDED_ACCELERATORS:
        issues.append(f"Very high GPU count ({accelerator_count}) may lead to inefficiencies")
    total_vram_gb = inventory.total_vram_gb
    if total_vram_gb > 0 and total_model_size_gb > total_vram_gb * 0.9:
        issues.append("Models may not fit in available VRAM")

    if accelerator_count > MAX_RECOMMENDED_ACCELERATORS or len(issues) >= 2:
        status = "critical"
    elif issues:
        status = "warning"
    else:
        status = "healthy"
    return ConfigurationHealth(status=status, issues=issues)


def hardware_caveats(inventory: HardwareInventory) -> List[str]:
    if not inventory.has_custom_units:
        return []
    custom = [selection.unit.name for selection in inventory.selections if selection.unit.custom]
    return [
        f"Custom accelerator(s) {', '.join(custom)}: memory and bandwidth figures are user-entered and unverified"
    ]


class PlanDeployment:
    """
    Derives a complete deployment plan from a hardware inventory and a model list.

    Callers invoke execute() whenever either input changes; nothing is
    recomputed implicitly. Plans are memoized when a cache is supplied.
    """

    def __init__(self, config: Optional[Config] = None, cache: Optional[CalculationCache] = None):
        self.config = config or Config()
        self.cache = cache
        self.calculator = VRAMBreakdownCalculator(self.config.heuristics)
        self.optimizer = ConfigurationOptimizer(self.calculator, entrypoint=self.config.command.entrypoint)
        self.advisor = QuantizationAdvisor(self.config.advisor)

    def execute(
        self,
        inventory: HardwareInventory,
        models: Sequence[ModelSpec],
        workload: WorkloadType = "serving",
    ) -> DeploymentPlan:
        models = list(models)
        if self.cache is None or not self.config.cache.enabled:
            return self._plan(inventory, models, workload)
        return self.cache.get_or_compute(
            input_digest(inventory, models, workload),
            lambda: self._plan(inventory, models, workload),
        )

    def breakdown(self, inventory: HardwareInventory, models: Sequence[ModelSpec]) -> Estimate[VRAMBreakdown]:
        """VRAM breakdown for the default serving parameters."""
        return self.calculator.compute(inventory.total_vram_gb, list(models))

    def clear_cache(self) -> int:
        """Drop every memoized plan; returns the number dropped."""
        if self.cache is None:
            return 0
        return self.cache.clear()

    def _plan(self, inventory: HardwareInventory, models: List[ModelSpec], workload: WorkloadType) -> DeploymentPlan:
        total_vram_gb = inventory.total_vram_gb
        total_model_size_gb = sum(model.size_gb for model in models)
        memory_pressure = classify_memory_pressure(total_model_size_gb, total_vram_gb)

        if inventory.is_empty or not models:
            reason = "No accelerators selected" if inventory.is_empty else "No models selected"
            return DeploymentPlan(
                has_valid_configuration=False,
                total_vram_gb=total_vram_gb,
                total_accelerator_count=inventory.total_accelerator_count,
                accelerator_names=inventory.unit_names,
                estimated_cost_per_hour=inventory.estimated_cost_per_hour,
                workload=workload,
                vram_breakdown=Estimate[VRAMBreakdown].unavailable(reason),
                memory_pressure=memory_pressure,
                health=analyze_health(inventory, total_model_size_gb, memory_pressure),
                caveats=hardware_caveats(inventory),
            )

        breakdown = self.calculator.compute(total_vram_gb, models)
        deficit_gb = breakdown.value.deficit_gb if breakdown.is_available else 0.0
        configurations = self.optimizer.optimize_all(inventory, models)
        recommendations = self.advisor.recommend_all(total_vram_gb, models, deficit_gb)

        degraded = [configuration.type for configuration in configurations if configuration.degraded]
        if degraded or breakdown.is_degraded:
            logger.warning(f"Plan built with fallbacks (breakdown: {breakdown.status.value}, configurations: {degraded})")

        return DeploymentPlan(
            has_valid_configuration=True,
            total_vram_gb=total_vram_gb,
            total_accelerator_count=inventory.total_accelerator_count,
            accelerator_names=inventory.unit_names,
            estimated_cost_per_hour=inventory.estimated_cost_per_hour,
            workload=workload,
            configurations=configurations,
            recommended_strategy=recommend_strategy(configurations, workload),
            vram_breakdown=breakdown,
            quantization_recommendations=recommendations,
            memory_pressure=memory_pressure,
            health=analyze_health(inventory, total_model_size_gb, memory_pressure),
            caveats=hardware_caveats(inventory),
        )
