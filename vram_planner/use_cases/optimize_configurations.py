"""
Derives throughput, latency and balanced vLLM configurations from a hardware inventory.

All three profiles run the same search; a ProfilePolicy record holds everything
that differs between them.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from vram_planner.entities.accelerator import HardwareInventory
from vram_planner.entities.configuration import (
    CONFIGURATION_TYPES,
    Configuration,
    ConfigurationMetrics,
    ConfigurationParameter,
    ServingParameters,
    WorkloadType,
)
from vram_planner.entities.model_spec import ModelSpec
from vram_planner.entities.vram_breakdown import VRAMBreakdown
from vram_planner.shared.command_formatter import CommandFormatter
from vram_planner.shared.configuration_validator import ConfigurationValidator
from vram_planner.shared.errors import ComputationError, InvalidInputError
from vram_planner.shared.logger import Logger
from vram_planner.use_cases.compute_vram_breakdown import VRAMBreakdownCalculator

logger = Logger.get(__name__)

SEQUENCE_CANDIDATES = (1, 2, 4, 8, 16, 32, 64, 96, 128, 192, 256)
BANDWIDTH_EFFICIENCY = 0.7  # Typical achieved fraction of peak memory bandwidth
DEFAULT_BANDWIDTH_GBPS = 900.0
MAX_SWAP_SPACE_GB = 16

WORKLOAD_PREFERENCES: Dict[str, str] = {
    "chat": "latency",
    "completion": "throughput",
    "code-generation": "balanced",
    "batch": "throughput",
    "serving": "balanced",
    "embedding": "throughput",
}

SearchOutcome = Literal["fits", "overflow", "below_band"]


@dataclass(frozen=True)
class ProfilePolicy:
    """Per-profile knobs for the shared configuration search."""
    type: str
    title: str
    description: str
    gpu_memory_utilization: float
    max_model_len: int
    max_num_seqs_cap: int
    swap_ratio: float
    utilization_explanation: str
    min_available_fraction: float = 0.0
    max_available_fraction: float = 1.0
    considerations: Tuple[str, ...] = field(default_factory=tuple)
    fallback_max_model_len: int = 2048
    fallback_max_num_seqs: int = 128


PROFILE_POLICIES: Dict[str, ProfilePolicy] = {
    "throughput": ProfilePolicy(
        type="throughput",
        title="Maximum Throughput",
        description="Packs as many concurrent sequences as the memory budget allows to maximize tokens per second.",
        gpu_memory_utilization=0.90,
        max_model_len=2048,
        max_num_seqs_cap=256,
        swap_ratio=0.15,
        utilization_explanation="High memory utilization leaves most VRAM to the KV cache for large batches.",
        considerations=(
            "Large batches raise per-request latency under load",
            "High memory utilization leaves little headroom for traffic spikes",
            "Best for offline and batch workloads",
        ),
        fallback_max_num_seqs=512,
    ),
    "latency": ProfilePolicy(
        type="latency",
        title="Minimum Latency",
        description="Keeps batches small so each request is scheduled immediately, and allows longer contexts.",
        gpu_memory_utilization=0.80,
        max_model_len=4096,
        max_num_seqs_cap=8,
        swap_ratio=0.05,
        utilization_explanation="Moderate memory utilization avoids preemption and swapping that add latency.",
        considerations=(
            "Small batches underuse the GPU for aggregate throughput",
            "Longer context window supports interactive chat history",
            "Best for interactive and real-time applications",
        ),
        fallback_max_model_len=4096,
    ),
    "balanced": ProfilePolicy(
        type="balanced",
        title="Balanced Performance",
        description="Moderate batching with a reserved memory buffer for stable production serving.",
        gpu_memory_utilization=0.85,
        max_model_len=3072,
        max_num_seqs_cap=128,
        swap_ratio=0.10,
        utilization_explanation="Balanced memory utilization trades some batch capacity for stability.",
        min_available_fraction=0.10,
        max_available_fraction=0.20,
        considerations=(
            "Balanced configuration suitable for most production workloads",
            "Moderate batch sizes provide good throughput without sacrificing latency",
            "Conservative memory usage ensures stability under varying loads",
        ),
    ),
}


def swap_space_gb(total_vram_gb: float, model_memory_gb: float, swap_ratio: float) -> int:
    """CPU swap space in GiB, capped at 16 GiB or a quarter of VRAM and at least 1 GiB."""
    max_swap = min(MAX_SWAP_SPACE_GB, total_vram_gb * 0.25)
    min_swap = max(1.0, model_memory_gb * 0.1)
    return max(1, int(round(min(max_swap, max(min_swap, total_vram_gb * swap_ratio)))))


class ConfigurationOptimizer:
    """Searches serving parameters for each optimization profile."""

    def __init__(
        self,
        calculator: Optional[VRAMBreakdownCalculator] = None,
        entrypoint: Optional[str] = None,
        policies: Optional[Dict[str, ProfilePolicy]] = None,
    ):
        self.calculator = calculator or VRAMBreakdownCalculator()
        self.entrypoint = entrypoint
        self.policies = policies or PROFILE_POLICIES

    def optimize_all(self, inventory: HardwareInventory, models: Sequence[ModelSpec]) -> List[Configuration]:
        """
        Produce one configuration per profile, in throughput/latency/balanced order.

        Returns an empty list when there is no hardware or no model to plan for.
        """
        if inventory.is_empty or not models:
            return []

        return [
            self.optimize(
                inventory.total_vram_gb,
                models,
                profile,
                accelerator_count=inventory.total_accelerator_count,
                bandwidth_gbps=inventory.average_bandwidth_gbps,
            )
            for profile in CONFIGURATION_TYPES
        ]

    def optimize(
        self,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
        profile: str,
        accelerator_count: int = 1,
        bandwidth_gbps: Optional[float] = None,
    ) -> Configuration:
        """
        Build the configuration for a single profile.

        Raises InvalidInputError for an unknown profile name. Otherwise never
        raises: if any step fails the profile's fixed fallback is returned with
        ``degraded`` set.
        """
        if profile not in self.policies:
            raise InvalidInputError(f"Unknown configuration profile '{profile}', expected one of {sorted(self.policies)}")
        policy = self.policies[profile]
        try:
            return self._optimize(policy, total_vram_gb, models, accelerator_count, bandwidth_gbps)
        except Exception as e:
            logger.warning(f"{policy.type} optimization failed, using fallback configuration: {e}")
            return self.fallback_configuration(policy, models, accelerator_count, reason=str(e))

    def _optimize(
        self,
        policy: ProfilePolicy,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
        accelerator_count: int,
        bandwidth_gbps: Optional[float],
    ) -> Configuration:
        if not models:
            raise InvalidInputError("No models to optimize for")
        if total_vram_gb is None or total_vram_gb <= 0:
            raise InvalidInputError(f"Invalid total VRAM: {total_vram_gb}")

        max_num_seqs, breakdown, outcome = self._search_max_num_seqs(policy, total_vram_gb, models)
        tensor_parallel_size = accelerator_count if accelerator_count > 1 else None
        swap_space = swap_space_gb(total_vram_gb, breakdown.model_weights, policy.swap_ratio)

        serving = ServingParameters(
            gpu_memory_utilization=policy.gpu_memory_utilization,
            max_model_len=policy.max_model_len,
            max_num_seqs=max_num_seqs,
            tensor_parallel_size=tensor_parallel_size,
            swap_space=swap_space,
        )
        parameters = self._build_parameters(policy, serving, models[0])

        considerations = list(policy.considerations)
        considerations.extend(self._situational_considerations(policy, total_vram_gb, models, breakdown, max_num_seqs, outcome))

        return Configuration(
            type=policy.type,
            title=policy.title,
            description=policy.description,
            parameters=parameters,
            metrics=self._estimate_metrics(breakdown, total_vram_gb, max_num_seqs, accelerator_count, bandwidth_gbps),
            command=CommandFormatter.render(parameters, self.entrypoint),
            considerations=considerations,
            breakdown=breakdown,
            validation=ConfigurationValidator.validate(parameters, accelerator_count),
        )

    def _search_max_num_seqs(
        self,
        policy: ProfilePolicy,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
    ) -> Tuple[int, VRAMBreakdown, SearchOutcome]:
        """
        Largest candidate concurrency that fits the policy's memory budget.

        KV memory grows with max_num_seqs, so the scan stops at the first
        candidate that does not fit. Returns (max_num_seqs, breakdown, outcome);
        when no candidate is feasible the outcome tells whether even one
        sequence overflows the budget or only the free-memory floor is missed.
        """
        budget_gb = total_vram_gb * policy.gpu_memory_utilization
        best: Optional[Tuple[int, VRAMBreakdown]] = None
        smallest: Optional[VRAMBreakdown] = None

        for candidate in SEQUENCE_CANDIDATES:
            if candidate > policy.max_num_seqs_cap:
                break
            estimate = self.calculator.compute(
                budget_gb,
                models,
                ServingParameters(
                    gpu_memory_utilization=policy.gpu_memory_utilization,
                    max_model_len=policy.max_model_len,
                    max_num_seqs=candidate,
                ),
            )
            if not estimate.is_available or estimate.is_degraded:
                raise ComputationError(estimate.reason or "Breakdown unavailable")

            breakdown = estimate.value
            if smallest is None:
                smallest = breakdown
            if not breakdown.fits or breakdown.available / total_vram_gb < policy.min_available_fraction:
                break
            best = (candidate, breakdown)

        if best is None:
            return SEQUENCE_CANDIDATES[0], smallest, "below_band" if smallest.fits else "overflow"
        return best[0], best[1], "fits"

    def _build_parameters(
        self,
        policy: ProfilePolicy,
        serving: ServingParameters,
        primary_model: ModelSpec,
    ) -> List[ConfigurationParameter]:
        parameters = [
            ConfigurationParameter(
                name="--model",
                value=primary_model.launch_id,
                explanation="Model served by this configuration.",
            ),
            ConfigurationParameter(
                name="--gpu-memory-utilization",
                value=CommandFormatter.format_value(serving.gpu_memory_utilization),
                explanation=policy.utilization_explanation,
            ),
            ConfigurationParameter(
                name="--max-model-len",
                value=CommandFormatter.format_value(serving.max_model_len),
                explanation="Maximum sequence length that can be processed.",
            ),
            ConfigurationParameter(
                name="--max-num-seqs",
                value=CommandFormatter.format_value(serving.max_num_seqs),
                explanation="Maximum number of sequences processed concurrently.",
            ),
        ]
        if serving.tensor_parallel_size:
            parameters.append(ConfigurationParameter(
                name="--tensor-parallel-size",
                value=CommandFormatter.format_value(serving.tensor_parallel_size),
                explanation="Number of GPUs to use for tensor parallelism.",
            ))
        if serving.swap_space is not None:
            parameters.append(ConfigurationParameter(
                name="--swap-space",
                value=CommandFormatter.format_value(serving.swap_space),
                explanation="CPU swap space per GPU (GiB) for preempted sequences.",
            ))
        return parameters

    @staticmethod
    def _situational_considerations(
        policy: ProfilePolicy,
        total_vram_gb: float,
        models: Sequence[ModelSpec],
        breakdown: VRAMBreakdown,
        max_num_seqs: int,
        outcome: SearchOutcome,
    ) -> List[str]:
        notes = []
        if outcome == "overflow":
            notes.append(
                f"Even one sequence of {policy.max_model_len} tokens exceeds the memory budget by "
                f"{breakdown.deficit_gb:.1f} GB; consider quantization, more GPUs or a shorter context"
            )
        elif outcome == "below_band":
            notes.append(
                f"Cannot keep {policy.min_available_fraction:.0%} of VRAM free even at 1 sequence of "
                f"{policy.max_model_len} tokens; consider quantization or more GPUs"
            )
        elif policy.max_available_fraction < 1.0 and breakdown.available / total_vram_gb > policy.max_available_fraction:
            notes.append(
                f"Over {policy.max_available_fraction:.0%} of VRAM stays free at {max_num_seqs} sequences; "
                f"the throughput profile can use it"
            )
        if len(models) > 1:
            notes.append(
                f"Only {models[0].launch_id} is launched by this command; "
                f"{len(models) - 1} other selected model(s) share the memory budget and need their own server"
            )
        for model in models:
            if not model.has_declared_parameters and model.quantization not in ("fp16", "bf16"):
                notes.append(
                    f"Parameter count of {model.name} was estimated from its size assuming fp16 storage; "
                    f"declare it for a precise estimate"
                )
        return notes

    @staticmethod
    def _estimate_metrics(
        breakdown: VRAMBreakdown,
        total_vram_gb: float,
        max_num_seqs: int,
        accelerator_count: int,
        bandwidth_gbps: Optional[float],
    ) -> ConfigurationMetrics:
        """Decode is memory-bound: every step streams the weights once per GPU shard."""
        effective_bandwidth = (bandwidth_gbps or DEFAULT_BANDWIDTH_GBPS) * BANDWIDTH_EFFICIENCY * max(1, accelerator_count)
        weights_gb = max(breakdown.model_weights, 0.01)
        steps_per_second = effective_bandwidth / weights_gb
        tokens_per_second = steps_per_second * max_num_seqs
        used_gb = breakdown.used_gb
        return ConfigurationMetrics(
            throughput=f"~{tokens_per_second:,.0f} tokens/s",
            latency=f"~{1000 / steps_per_second:.1f} ms/token",
            memory_usage=f"{used_gb:.1f} GB / {total_vram_gb:.0f} GB ({used_gb / total_vram_gb:.0%})",
        )

    def fallback_configuration(
        self,
        policy: ProfilePolicy,
        models: Sequence[ModelSpec],
        accelerator_count: int,
        reason: Optional[str] = None,
    ) -> Configuration:
        """Fixed configuration for a profile; depends on nothing that can fail."""
        primary = models[0] if models else None
        serving = ServingParameters(
            gpu_memory_utilization=0.85,
            max_model_len=policy.fallback_max_model_len,
            max_num_seqs=policy.fallback_max_num_seqs,
            tensor_parallel_size=accelerator_count if accelerator_count > 1 else None,
            swap_space=4,
        )
        parameters = [
            ConfigurationParameter(name="--model", value=primary.launch_id if primary else "MODEL_PATH",
                                   explanation="Model served by this configuration."),
            ConfigurationParameter(name="--gpu-memory-utilization", value="0.85",
                                   explanation="GPU memory utilization."),
            ConfigurationParameter(name="--max-model-len", value=str(serving.max_model_len),
                                   explanation="Maximum sequence length."),
            ConfigurationParameter(name="--max-num-seqs", value=str(serving.max_num_seqs),
                                   explanation="Maximum concurrent sequences."),
        ]
        if serving.tensor_parallel_size:
            parameters.append(ConfigurationParameter(name="--tensor-parallel-size", value=str(serving.tensor_parallel_size),
                                                     explanation="Number of GPUs to use for tensor parallelism."))
        parameters.append(ConfigurationParameter(name="--swap-space", value=str(serving.swap_space),
                                                 explanation="CPU swap space per GPU (GiB)."))

        return Configuration(
            type=policy.type,
            title=policy.title,
            description=f"Basic {policy.type} configuration.",
            parameters=parameters,
            metrics=ConfigurationMetrics(throughput="Estimated", latency="Estimated", memory_usage="Estimated"),
            command=CommandFormatter.render(parameters, self.entrypoint),
            considerations=["This is a fallback configuration."],
            degraded=True,
            fallback_reason=reason,
            validation=ConfigurationValidator.validate(parameters, accelerator_count),
        )


def recommend_strategy(configurations: Sequence[Configuration], workload: WorkloadType = "serving") -> Optional[str]:
    """
    Pick the profile to deploy for a workload.

    Only configurations that were computed without fallback and fit their
    budget are viable. The workload's preferred profile wins when viable;
    otherwise the viable profile that puts the most memory to work. None
    when nothing is viable.
    """
    viable = [
        configuration
        for configuration in configurations
        if not configuration.degraded and configuration.breakdown is not None and configuration.breakdown.fits
    ]
    if not viable:
        return None

    preferred = WORKLOAD_PREFERENCES.get(workload, "balanced")
    if any(configuration.type == preferred for configuration in viable):
        return preferred

    def memory_efficiency(configuration: Configuration) -> float:
        breakdown = configuration.breakdown
        return breakdown.used_gb / breakdown.total_vram_gb if breakdown.total_vram_gb else 0.0

    return max(viable, key=memory_efficiency).type
