"""
Sanity checks for vLLM engine parameters before a command is handed out.
"""
import math
from typing import Any, Dict, Optional

from vram_planner.entities.configuration import ValidationResult
from vram_planner.shared.command_formatter import CommandFormatter, ParameterInput

MIN_GPU_MEMORY_UTILIZATION = 0.1
OOM_RISK_UTILIZATION = 0.95
MAX_EFFICIENT_PARALLELISM = 8


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class ConfigurationValidator:
    """Checks parameter values and their consistency with the selected hardware."""

    @staticmethod
    def validate(parameters: ParameterInput, accelerator_count: Optional[int] = None) -> ValidationResult:
        """
        Validate engine parameters.

        Args:
            parameters: Mapping of flag names to values, or a list of ConfigurationParameter
            accelerator_count: GPUs in the inventory, enables the tensor-parallel consistency checks

        Returns:
            ValidationResult with blocking errors and advisory warnings
        """
        values: Dict[str, Any] = dict(CommandFormatter.ordered_parameters(parameters))
        result = ValidationResult()

        model = values.get("model")
        if model is None or not str(model).strip():
            result.errors.append("Model parameter is required")

        ConfigurationValidator._check_utilization(values, result)
        for name in ("max-model-len", "max-num-seqs"):
            ConfigurationValidator._check_positive_integer(values, name, result)
        ConfigurationValidator._check_tensor_parallel(values, accelerator_count, result)

        if "swap-space" in values:
            swap = _as_number(values["swap-space"])
            if swap is None or swap < 0:
                result.errors.append(f"swap-space: Must be a non-negative number, got {values['swap-space']!r}")

        return result

    @staticmethod
    def _check_utilization(values: Dict[str, Any], result: ValidationResult) -> None:
        if "gpu-memory-utilization" not in values:
            return
        utilization = _as_number(values["gpu-memory-utilization"])
        if utilization is None:
            result.errors.append("gpu-memory-utilization: Must be a valid number")
        elif not MIN_GPU_MEMORY_UTILIZATION <= utilization <= 1.0:
            result.errors.append(
                f"gpu-memory-utilization: Must be between {MIN_GPU_MEMORY_UTILIZATION} and 1.0, got {utilization}"
            )
        elif utilization > OOM_RISK_UTILIZATION:
            result.warnings.append("GPU memory utilization above 95% may cause OOM errors")

    @staticmethod
    def _check_positive_integer(values: Dict[str, Any], name: str, result: ValidationResult) -> None:
        if name not in values:
            return
        number = _as_number(values[name])
        if number is None or number < 1 or number != int(number):
            result.errors.append(f"{name}: Must be a positive integer, got {values[name]!r}")

    @staticmethod
    def _check_tensor_parallel(
        values: Dict[str, Any],
        accelerator_count: Optional[int],
        result: ValidationResult,
    ) -> None:
        if "tensor-parallel-size" not in values:
            if accelerator_count and accelerator_count > 1:
                result.warnings.append(
                    f"{accelerator_count} GPUs are selected but tensor parallelism is not enabled"
                )
            return

        size = _as_number(values["tensor-parallel-size"])
        if size is None or size < 1 or size != int(size):
            result.errors.append(f"tensor-parallel-size: Must be a positive integer, got {values['tensor-parallel-size']!r}")
            return
        size = int(size)

        if accelerator_count is not None and size != accelerator_count:
            result.warnings.append(
                f"tensor-parallel-size {size} does not match the {accelerator_count} selected GPU(s)"
            )
        if size > MAX_EFFICIENT_PARALLELISM:
            result.warnings.append("High parallelism may impact performance on smaller models")
