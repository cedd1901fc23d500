from vram_planner.entities.configuration import ConfigurationParameter
from vram_planner.shared.command_formatter import DEFAULT_ENTRYPOINT, CommandFormatter


class TestCommandFormatter:
    """Test launch command rendering."""

    def test_canonical_order(self):
        command = CommandFormatter.render({
            "swap_space": 4,
            "max_num_seqs": 16,
            "tensor-parallel-size": 2,
            "--model": "meta-llama/Llama-2-7b-hf",
            "gpu_memory_utilization": 0.9,
            "max-model-len": 2048,
        })
        assert command == (
            f"{DEFAULT_ENTRYPOINT} --model meta-llama/Llama-2-7b-hf --gpu-memory-utilization 0.90 "
            "--max-model-len 2048 --max-num-seqs 16 --tensor-parallel-size 2 --swap-space 4"
        )

    def test_extra_parameters_keep_insertion_order(self):
        command = CommandFormatter.render({"model": "m", "dtype": "half", "enforce_eager": True, "max_num_seqs": 8})
        assert command.endswith("--model m --max-num-seqs 8 --dtype half --enforce-eager")

    def test_false_and_none_omitted(self):
        command = CommandFormatter.render({"model": "m", "enforce-eager": False, "swap-space": None})
        assert command == f"{DEFAULT_ENTRYPOINT} --model m"

    def test_missing_model_uses_placeholder(self):
        assert CommandFormatter.render({"max-num-seqs": 4}) == f"{DEFAULT_ENTRYPOINT} --model MODEL_PATH --max-num-seqs 4"

    def test_values_needing_quotes(self):
        command = CommandFormatter.render({"model": "/models/my model"})
        assert command.endswith("--model '/models/my model'")

    def test_float_formatting_fixed(self):
        assert CommandFormatter.format_value(0.85) == "0.85"
        assert CommandFormatter.format_value(1.0) == "1.00"
        assert CommandFormatter.format_value(2048) == "2048"

    def test_custom_entrypoint(self):
        assert CommandFormatter.render({"model": "m"}, entrypoint="vllm serve") == "vllm serve --model m"

    def test_configuration_parameters_accepted(self):
        parameters = [
            ConfigurationParameter(name="--max-num-seqs", value="64", explanation=""),
            ConfigurationParameter(name="--model", value="m", explanation=""),
        ]
        assert CommandFormatter.render(parameters) == f"{DEFAULT_ENTRYPOINT} --model m --max-num-seqs 64"

    def test_idempotent(self):
        parameters = {"model": "m", "gpu-memory-utilization": 0.9, "max-model-len": 2048, "max-num-seqs": 64}
        assert CommandFormatter.render(parameters) == CommandFormatter.render(dict(parameters))
