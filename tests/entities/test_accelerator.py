import pytest

from vram_planner.entities.accelerator import AcceleratorSelection, AcceleratorUnit, HardwareInventory


class TestAcceleratorUnit:
    """Test AcceleratorUnit model."""

    def test_valid_unit(self):
        unit = AcceleratorUnit(name="RTX 4090", vram_gb=24)
        assert unit.name == "RTX 4090"
        assert unit.vram_gb == 24
        assert unit.custom is False

    def test_vram_must_be_positive(self):
        with pytest.raises(ValueError):
            AcceleratorUnit(name="Broken", vram_gb=0)

        with pytest.raises(ValueError):
            AcceleratorUnit(name="Broken", vram_gb=-8)

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            AcceleratorUnit(name="", vram_gb=24)

    def test_bandwidth_heuristic_by_memory_class(self):
        assert AcceleratorUnit(name="H100", vram_gb=80).estimated_bandwidth_gbps == 3500.0
        assert AcceleratorUnit(name="RTX 6000", vram_gb=48).estimated_bandwidth_gbps == 2000.0
        assert AcceleratorUnit(name="RTX 4090", vram_gb=24).estimated_bandwidth_gbps == 1000.0
        assert AcceleratorUnit(name="T4", vram_gb=16).estimated_bandwidth_gbps == 800.0

    def test_declared_bandwidth_wins(self):
        unit = AcceleratorUnit(name="Custom", vram_gb=80, custom=True, memory_bandwidth_gbps=2039)
        assert unit.estimated_bandwidth_gbps == 2039


class TestAcceleratorSelection:
    """Test AcceleratorSelection model."""

    def test_quantity_bounds(self, a100):
        assert AcceleratorSelection(unit=a100, quantity=8).vram_gb == 640

        with pytest.raises(ValueError):
            AcceleratorSelection(unit=a100, quantity=0)

        with pytest.raises(ValueError):
            AcceleratorSelection(unit=a100, quantity=9)


class TestHardwareInventory:
    """Test HardwareInventory aggregates."""

    def test_total_vram_sums_units_times_quantity(self, a100):
        rtx = AcceleratorUnit(name="RTX 4090", vram_gb=24)
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=a100, quantity=2),
            AcceleratorSelection(unit=rtx, quantity=1),
        ])
        assert inventory.total_vram_gb == 184
        assert inventory.total_accelerator_count == 3
        assert inventory.unit_names == ["A100", "RTX 4090"]

    def test_empty_inventory(self, empty_inventory):
        assert empty_inventory.is_empty
        assert empty_inventory.total_vram_gb == 0
        assert empty_inventory.total_accelerator_count == 0
        assert empty_inventory.average_bandwidth_gbps == 0.0

    def test_duplicate_names_rejected(self, a100):
        with pytest.raises(ValueError, match="unique"):
            HardwareInventory(selections=[
                AcceleratorSelection(unit=a100, quantity=1),
                AcceleratorSelection(unit=a100, quantity=2),
            ])

    def test_names_are_case_sensitive(self):
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=AcceleratorUnit(name="a100", vram_gb=40), quantity=1),
            AcceleratorSelection(unit=AcceleratorUnit(name="A100", vram_gb=80), quantity=1),
        ])
        assert inventory.total_vram_gb == 120

    def test_average_bandwidth_is_quantity_weighted(self):
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=AcceleratorUnit(name="A", vram_gb=80, memory_bandwidth_gbps=3000), quantity=3),
            AcceleratorSelection(unit=AcceleratorUnit(name="B", vram_gb=24, memory_bandwidth_gbps=1000), quantity=1),
        ])
        assert inventory.average_bandwidth_gbps == pytest.approx(2500.0)

    def test_estimated_cost(self, dual_a100_inventory):
        assert dual_a100_inventory.estimated_cost_per_hour == pytest.approx(16.0)

    def test_custom_units_flagged(self, a100):
        custom = AcceleratorUnit(name="Lab GPU", vram_gb=32, custom=True)
        inventory = HardwareInventory(selections=[
            AcceleratorSelection(unit=a100, quantity=1),
            AcceleratorSelection(unit=custom, quantity=1),
        ])
        assert inventory.has_custom_units
