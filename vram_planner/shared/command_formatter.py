"""
Renders vLLM engine parameters into a launch command string.
"""
import shlex
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from vram_planner.entities.configuration import ConfigurationParameter

DEFAULT_ENTRYPOINT = "python -m vllm.entrypoints.openai.api_server"
MODEL_PLACEHOLDER = "MODEL_PATH"

CANONICAL_ORDER = (
    "model",
    "gpu-memory-utilization",
    "max-model-len",
    "max-num-seqs",
    "tensor-parallel-size",
    "swap-space",
)

ParameterInput = Union[Mapping[str, Any], Iterable[ConfigurationParameter]]


class CommandFormatter:
    """Deterministic rendering of engine parameters as a command line."""

    @staticmethod
    def normalize_name(name: str) -> str:
        """'--max_num_seqs' and 'max-num-seqs' both become 'max-num-seqs'."""
        return name.strip().lstrip("-").replace("_", "-").lower()

    @staticmethod
    def format_value(value: Any) -> Optional[str]:
        """
        Render a value as a string, or None when the flag should be dropped.

        Floats always use two decimals so output never depends on locale or
        on float repr details.
        """
        if value is None or value is False:
            return None
        if value is True:
            return ""
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return f"{value:.2f}"
        text = str(value)
        return text or None

    @staticmethod
    def ordered_parameters(parameters: ParameterInput) -> List[Tuple[str, Any]]:
        """Canonical flags first, everything else in insertion order."""
        if isinstance(parameters, Mapping):
            items = list(parameters.items())
        else:
            items = [(parameter.name, parameter.value) for parameter in parameters]

        normalized = {}
        for name, value in items:
            normalized[CommandFormatter.normalize_name(name)] = value

        ordered = [(name, normalized[name]) for name in CANONICAL_ORDER if name in normalized]
        ordered.extend((name, value) for name, value in normalized.items() if name not in CANONICAL_ORDER)
        return ordered

    @staticmethod
    def render(parameters: ParameterInput, entrypoint: Optional[str] = None) -> str:
        """
        Render parameters as '<entrypoint> --model <id> --gpu-memory-utilization <v> ...'.

        Args:
            parameters: Mapping of flag names to values, or a list of ConfigurationParameter
            entrypoint: Command prefix (defaults to the vLLM OpenAI API server module)

        Returns:
            The command string
        """
        ordered = CommandFormatter.ordered_parameters(parameters)
        if not any(name == "model" for name, _ in ordered):
            ordered.insert(0, ("model", MODEL_PLACEHOLDER))

        args = [entrypoint or DEFAULT_ENTRYPOINT]
        for name, value in ordered:
            rendered = CommandFormatter.format_value(value)
            if rendered and isinstance(value, str):
                rendered = shlex.quote(rendered)
            if rendered is None:
                if name == "model":
                    rendered = MODEL_PLACEHOLDER
                else:
                    continue
            args.append(f"--{name} {rendered}" if rendered else f"--{name}")
        return " ".join(args)
