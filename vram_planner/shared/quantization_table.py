"""
Quantization formats supported by vLLM and their memory/quality characteristics.
"""
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from vram_planner.entities.quantization import QualityImpact, QuantizationInfo
from vram_planner.shared.logger import Logger

logger = Logger.get(__name__)

DEFAULT_FORMAT = "fp16"

_FORMATS = {
    "fp32": QuantizationInfo(
        format="fp32", bits_per_param=32, bytes_per_param=4.0, memory_factor=1.0,
        quality_loss=0.0, overhead=0.0,
        description="Full 32-bit floating point precision",
    ),
    "fp16": QuantizationInfo(
        format="fp16", bits_per_param=16, bytes_per_param=2.0, memory_factor=0.5,
        quality_loss=0.02, overhead=0.0,
        description="16-bit floating point (recommended default)",
    ),
    "bf16": QuantizationInfo(
        format="bf16", bits_per_param=16, bytes_per_param=2.0, memory_factor=0.5,
        quality_loss=0.01, overhead=0.0,
        description="Brain Float 16 (better numerical stability than fp16)",
    ),
    "int8": QuantizationInfo(
        format="int8", bits_per_param=8, bytes_per_param=1.0, memory_factor=0.25,
        quality_loss=0.05, overhead=0.02,
        description="Dynamic 8-bit integer quantization",
    ),
    "int4": QuantizationInfo(
        format="int4", bits_per_param=4, bytes_per_param=0.5, memory_factor=0.125,
        quality_loss=0.15, overhead=0.03,
        description="Static 4-bit integer quantization",
    ),
    "awq": QuantizationInfo(
        format="awq", bits_per_param=4, bytes_per_param=0.5, memory_factor=0.125,
        quality_loss=0.03, overhead=0.01,
        description="Activation-aware Weight Quantization (4-bit)",
    ),
    "gptq": QuantizationInfo(
        format="gptq", bits_per_param=4, bytes_per_param=0.5, memory_factor=0.125,
        quality_loss=0.05, overhead=0.02,
        description="GPTQ post-training quantization (4-bit)",
    ),
    "ggml": QuantizationInfo(
        format="ggml", bits_per_param=4, bytes_per_param=0.5, memory_factor=0.125,
        quality_loss=0.08, overhead=0.02,
        description="GGML/GGUF quantization format",
    ),
}

_ALIASES = {
    "bfp16": "bf16",
    "bfloat16": "bf16",
    "float16": "fp16",
    "half": "fp16",
    "float32": "fp32",
    "gguf": "ggml",
}


class QuantizationTable:
    """Read-only lookup of quantization formats."""

    FORMATS: Mapping[str, QuantizationInfo] = MappingProxyType(_FORMATS)

    @staticmethod
    def normalize(quantization_format: Optional[str]) -> str:
        """
        Normalize a format tag to a table key.

        Unknown or empty tags map to fp16.
        """
        if not quantization_format:
            return DEFAULT_FORMAT
        key = str(quantization_format).strip().lower()
        key = _ALIASES.get(key, key)
        if key not in _FORMATS:
            logger.debug(f"Unknown quantization format '{quantization_format}', using {DEFAULT_FORMAT}")
            return DEFAULT_FORMAT
        return key

    @staticmethod
    def is_supported(quantization_format: Optional[str]) -> bool:
        """True when the tag names a table entry, directly or through an alias."""
        if not quantization_format:
            return False
        key = str(quantization_format).strip().lower()
        return _ALIASES.get(key, key) in _FORMATS

    @staticmethod
    def lookup(quantization_format: Optional[str]) -> QuantizationInfo:
        """Get the characteristics of a format; never raises."""
        return _FORMATS[QuantizationTable.normalize(quantization_format)]

    @staticmethod
    def supported_formats() -> List[str]:
        return list(_FORMATS.keys())

    @staticmethod
    def compare(formats: Iterable[str]) -> List[QuantizationInfo]:
        """Sort formats by memory factor (most savings first), then by quality loss."""
        infos = [QuantizationTable.lookup(f) for f in formats]
        return sorted(infos, key=lambda info: (info.memory_factor, info.quality_loss))

    @staticmethod
    def quality_impact(quantization_format: str, parameters: float) -> QualityImpact:
        """
        Estimate the quality impact of a format for a model of the given size.

        Larger models (7B+) tolerate quantization better than small ones.
        """
        info = QuantizationTable.lookup(quantization_format)
        size_multiplier = 0.8 if parameters >= 7e9 else 1.2
        adjusted_loss = info.quality_loss * size_multiplier

        severity = "low"
        if adjusted_loss > 0.1:
            severity = "high"
        elif adjusted_loss > 0.05:
            severity = "medium"

        return QualityImpact(
            format=info.format,
            quality_loss=round(adjusted_loss, 4),
            severity=severity,
            description=info.description,
        )

    @staticmethod
    def describe_recommendation(quantization_format: str, parameters: float) -> str:
        """Human-readable rationale for using a format on a model of the given size."""
        info = QuantizationTable.lookup(quantization_format)
        savings_percent = (1 - info.memory_factor / _FORMATS[DEFAULT_FORMAT].memory_factor) * 100

        if info.format == "fp32":
            return "Use only for research or when maximum precision is required"
        if info.format in ("fp16", "bf16"):
            return "Recommended for most production deployments with good balance of speed and quality"
        if info.format == "awq":
            size_class = "large" if parameters >= 7e9 else "smaller"
            return f"Excellent for {size_class} models, ~{savings_percent:.0f}% memory savings over fp16 with minimal quality loss"
        if info.format == "gptq":
            return f"Good for memory-constrained environments, {savings_percent:.0f}% memory reduction over fp16"
        if info.format == "int8":
            return "Use when memory is very limited, may impact quality on smaller models"
        if info.format == "int4":
            return "Extreme memory savings but significant quality trade-offs for most models"
        return f"{savings_percent:.0f}% memory savings over fp16 - evaluate quality trade-offs for your use case"
