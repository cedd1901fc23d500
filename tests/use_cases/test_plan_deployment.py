import pytest

from vram_planner.entities.accelerator import AcceleratorSelection, AcceleratorUnit, HardwareInventory
from vram_planner.entities.estimate import EstimateStatus
from vram_planner.entities.model_spec import ModelSpec
from vram_planner.frameworks_drivers.calculation_cache import CalculationCache
from vram_planner.frameworks_drivers.config import CacheConfig, Config
from vram_planner.use_cases.plan_deployment import PlanDeployment, analyze_health, classify_memory_pressure


class TestPlanDeployment:
    def test_llama_on_dual_a100(self, plan_deployment, dual_a100_inventory, llama_7b):
        plan = plan_deployment.execute(dual_a100_inventory, [llama_7b])

        assert plan.has_valid_configuration
        assert plan.total_vram_gb == 160
        assert plan.total_accelerator_count == 2
        assert len(plan.configurations) == 3
        assert {c.type for c in plan.configurations} == {"throughput", "latency", "balanced"}
        assert all("--tensor-parallel-size 2" in c.command for c in plan.configurations)
        assert plan.vram_breakdown.status == EstimateStatus.EXACT
        assert plan.quantization_recommendations == []
        assert plan.memory_pressure == "low"
        assert plan.health.status == "healthy"

    def test_plan_describes_hardware_and_strategy(self, plan_deployment, dual_a100_inventory, llama_7b):
        plan = plan_deployment.execute(dual_a100_inventory, [llama_7b])

        assert plan.accelerator_names == ["A100"]
        assert plan.estimated_cost_per_hour == pytest.approx(16.0)
        assert plan.workload == "serving"
        assert plan.recommended_strategy == "balanced"
        assert plan.caveats == []

    def test_workload_selects_strategy(self, plan_deployment, dual_a100_inventory, llama_7b):
        assert plan_deployment.execute(dual_a100_inventory, [llama_7b], "chat").recommended_strategy == "latency"
        assert plan_deployment.execute(dual_a100_inventory, [llama_7b], "batch").recommended_strategy == "throughput"
        assert len(plan_deployment.cache) == 2

    def test_custom_units_are_flagged(self, plan_deployment, llama_7b):
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=AcceleratorUnit(name="Lab GPU", vram_gb=48, custom=True), quantity=1),
        ])

        plan = plan_deployment.execute(inventory, [llama_7b])

        assert len(plan.caveats) == 1
        assert "Lab GPU" in plan.caveats[0]
        assert "user-entered" in plan.caveats[0]

    def test_no_strategy_without_configurations(self, plan_deployment, empty_inventory, llama_7b):
        assert plan_deployment.execute(empty_inventory, [llama_7b]).recommended_strategy is None

    def test_empty_inventory(self, plan_deployment, empty_inventory, llama_7b):
        plan = plan_deployment.execute(empty_inventory, [llama_7b])

        assert not plan.has_valid_configuration
        assert plan.configurations == []
        assert plan.vram_breakdown.status == EstimateStatus.UNAVAILABLE
        assert plan.vram_breakdown.value is None
        assert plan.memory_pressure == "unknown"

    def test_no_models(self, plan_deployment, dual_a100_inventory):
        plan = plan_deployment.execute(dual_a100_inventory, [])
        assert not plan.has_valid_configuration
        assert plan.configurations == []
        assert not plan.vram_breakdown.is_available

    def test_oversubscribed_inventory_gets_recommendation(self, plan_deployment):
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=AcceleratorUnit(name="RTX 4090", vram_gb=24), quantity=1),
        ])
        model = ModelSpec(name="Big-13B", size_gb=26)

        plan = plan_deployment.execute(inventory, [model])

        assert plan.has_valid_configuration
        assert plan.vram_breakdown.value.deficit_gb > 0
        assert plan.vram_breakdown.value.available == 0
        assert plan.quantization_recommendations[0].recommended_format == "awq"
        assert plan.memory_pressure == "critical"
        assert plan.health.status == "critical"

    def test_plans_are_memoized(self, plan_deployment, dual_a100_inventory, llama_7b):
        first = plan_deployment.execute(dual_a100_inventory, [llama_7b])
        second = plan_deployment.execute(dual_a100_inventory, [llama_7b])

        assert first is second
        assert plan_deployment.cache.hits == 1
        assert plan_deployment.cache.misses == 1

    def test_clear_cache(self, plan_deployment, dual_a100_inventory, llama_7b):
        first = plan_deployment.execute(dual_a100_inventory, [llama_7b])
        assert plan_deployment.clear_cache() == 1
        assert plan_deployment.execute(dual_a100_inventory, [llama_7b]) is not first

    def test_disabled_cache_is_bypassed(self, dual_a100_inventory, llama_7b):
        use_case = PlanDeployment(Config(cache=CacheConfig(enabled=False)), CalculationCache())
        use_case.execute(dual_a100_inventory, [llama_7b])
        assert len(use_case.cache) == 0

    def test_without_cache(self, dual_a100_inventory, llama_7b):
        use_case = PlanDeployment()
        assert use_case.execute(dual_a100_inventory, [llama_7b]).has_valid_configuration
        assert use_case.clear_cache() == 0


class TestMemoryPressure:
    """Test memory pressure classification."""

    @pytest.mark.parametrize("size,expected", [
        (10, "low"),
        (70, "moderate"),
        (85, "high"),
        (95, "critical"),
    ])
    def test_levels(self, size, expected):
        assert classify_memory_pressure(size, 100) == expected

    def test_unknown_without_vram(self):
        assert classify_memory_pressure(10, 0) == "unknown"


class TestConfigurationHealth:
    """Test configuration health analysis."""

    def test_warning_on_single_issue(self, dual_a100_inventory):
        health = analyze_health(dual_a100_inventory, 150, "high")
        assert health.status == "warning"
        assert health.issues == ["Models may not fit in available VRAM"]

    def test_many_accelerators_critical(self):
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=AcceleratorUnit(name=f"GPU-{i}", vram_gb=24), quantity=6)
            for i in range(3)
        ])
        health = analyze_health(inventory, 10, "low")
        assert health.status == "critical"
        assert "Very high GPU count (18)" in health.issues[0]
