from vram_planner.shared.error_utils import ErrorUtils
from vram_planner.use_cases.plan_deployment import PlanDeployment


class HealthController:
    def __init__(self, plan_deployment_use_case: PlanDeployment):
        self.plan_deployment_use_case = plan_deployment_use_case

    def health(self):
        try:
            cache = self.plan_deployment_use_case.cache
            return {"status": "ok", "cache_entries": len(cache) if cache is not None else 0}
        except Exception as e:
            return ErrorUtils.format_error_response(f"Health check failed: {str(e)}", "health_check_error")
