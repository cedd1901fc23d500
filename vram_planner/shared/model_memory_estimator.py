"""
Utility for estimating weight and KV cache memory from a parameter count and quantization.
"""
import math
from typing import Optional, Tuple

from vram_planner.entities.model_spec import estimate_parameters_from_size
from vram_planner.shared.errors import ComputationError
from vram_planner.shared.quantization_table import QuantizationTable

BYTES_PER_GB = 1024 ** 3


def _require_finite(name: str, value: float, allow_zero: bool = True) -> float:
    if value is None:
        raise ComputationError(f"{name} is missing")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ComputationError(f"{name} is not numeric: {value!r}") from e
    if not math.isfinite(number):
        raise ComputationError(f"{name} is not finite: {value!r}")
    if number < 0 or (number == 0 and not allow_zero):
        raise ComputationError(f"{name} must be {'non-negative' if allow_zero else 'positive'}, got {value!r}")
    return number


class ModelMemoryEstimator:
    """Class for estimating model memory requirements."""

    @staticmethod
    def estimate_parameters_from_size(size_gb: Optional[float]) -> int:
        """
        Estimate a parameter count from the on-disk size, assuming fp16 storage.

        Args:
            size_gb: Model size in GB (falls back to 7B parameters when missing)

        Returns:
            Estimated number of parameters
        """
        return estimate_parameters_from_size(size_gb)

    @staticmethod
    def weight_memory_gb(parameters: float, quantization_format: str = "fp16", include_overhead: bool = True) -> float:
        """
        Memory needed to hold the model weights.

        Args:
            parameters: Number of model parameters (e.g., 7_000_000_000 for 7B model)
            quantization_format: Quantization format (e.g., 'fp16', 'awq', 'int8')
            include_overhead: Add the format's storage overhead (scales, zero points)

        Returns:
            Weight memory in GB
        """
        parameters = _require_finite("parameters", parameters)
        info = QuantizationTable.lookup(quantization_format)
        overhead = info.overhead if include_overhead else 0.0
        return parameters * info.bytes_per_param * (1 + overhead) / BYTES_PER_GB

    @staticmethod
    def infer_architecture(parameters: float, layer_hint: Optional[int] = None) -> Tuple[int, int]:
        """
        Infer (num_layers, hidden_size) from a parameter count.

        Layers follow floor(sqrt(parameters / 1e6)) unless a hint is given; the
        hidden size then solves parameters ~= 12 * layers * hidden^2, the usual
        dense transformer count.
        """
        parameters = _require_finite("parameters", parameters, allow_zero=False)
        if layer_hint:
            layers = int(_require_finite("layer_hint", layer_hint, allow_zero=False))
        else:
            layers = max(1, math.floor(math.sqrt(parameters / 1e6)))
        hidden_size = max(1, math.floor(math.sqrt(parameters / (12 * layers))))
        return layers, hidden_size

    @staticmethod
    def kv_cache_memory_gb(
        parameters: float,
        max_num_seqs: int,
        max_model_len: int,
        kv_precision: str = "fp16",
        layer_hint: Optional[int] = None,
    ) -> float:
        """
        Memory needed for the key/value cache of all concurrent sequences.

        Args:
            parameters: Number of model parameters
            max_num_seqs: Maximum number of concurrent sequences
            max_model_len: Maximum sequence length in tokens
            kv_precision: Precision of the cached tensors (any quantization format tag)
            layer_hint: Known layer count, improves accuracy

        Returns:
            KV cache memory in GB
        """
        max_num_seqs = _require_finite("max_num_seqs", max_num_seqs)
        max_model_len = _require_finite("max_model_len", max_model_len)
        layers, hidden_size = ModelMemoryEstimator.infer_architecture(parameters, layer_hint)
        bytes_per_element = QuantizationTable.lookup(kv_precision).bytes_per_param

        # 2 tensors (K and V) per layer per token
        kv_per_token = 2 * layers * hidden_size * bytes_per_element
        return kv_per_token * max_num_seqs * max_model_len / BYTES_PER_GB
