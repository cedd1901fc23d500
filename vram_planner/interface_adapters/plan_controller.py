from vram_planner.entities.plan_request import PlanRequest, ValidationRequest
from vram_planner.shared.configuration_validator import ConfigurationValidator
from vram_planner.shared.error_utils import ErrorUtils
from vram_planner.shared.logger import Logger
from vram_planner.shared.quantization_table import QuantizationTable
from vram_planner.use_cases.plan_deployment import PlanDeployment

logger = Logger.get(__name__)


class PlanController:
    def __init__(self, plan_deployment_use_case: PlanDeployment):
        self.plan_deployment_use_case = plan_deployment_use_case

    def plan(self, request: PlanRequest) -> dict:
        try:
            plan = self.plan_deployment_use_case.execute(request.inventory, request.models, request.workload)
            return plan.model_dump(mode="json")
        except Exception as e:
            logger.error(f"Planning failed: {e}")
            return ErrorUtils.from_exception("Planning failed", e, "planning_error")

    def breakdown(self, request: PlanRequest) -> dict:
        try:
            estimate = self.plan_deployment_use_case.breakdown(request.inventory, request.models)
            return estimate.model_dump(mode="json")
        except Exception as e:
            logger.error(f"Breakdown failed: {e}")
            return ErrorUtils.from_exception("Breakdown failed", e, "breakdown_error")

    def configurations(self, request: PlanRequest):
        try:
            plan = self.plan_deployment_use_case.execute(request.inventory, request.models, request.workload)
            return [configuration.model_dump(mode="json") for configuration in plan.configurations]
        except Exception as e:
            logger.error(f"Configuration optimization failed: {e}")
            return ErrorUtils.from_exception("Configuration optimization failed", e, "optimization_error")

    def recommendations(self, request: PlanRequest):
        try:
            plan = self.plan_deployment_use_case.execute(request.inventory, request.models, request.workload)
            return [recommendation.model_dump(mode="json") for recommendation in plan.quantization_recommendations]
        except Exception as e:
            logger.error(f"Quantization advice failed: {e}")
            return ErrorUtils.from_exception("Quantization advice failed", e, "quantization_error")

    def formats(self) -> dict:
        # Most memory savings first
        infos = QuantizationTable.compare(QuantizationTable.supported_formats())
        return {info.format: info.model_dump() for info in infos}

    def validate(self, request: ValidationRequest) -> dict:
        try:
            result = ConfigurationValidator.validate(request.parameters, request.accelerator_count)
            return {**result.model_dump(), "is_valid": result.is_valid}
        except Exception as e:
            logger.error(f"Validation failed: {e}")
            return ErrorUtils.from_exception("Validation failed", e, "validation_error")

    def clear_cache(self) -> dict:
        try:
            return {"cleared": self.plan_deployment_use_case.clear_cache()}
        except Exception as e:
            return ErrorUtils.from_exception("Cache clear failed", e, "cache_error")
