from fastapi import Depends, FastAPI

from vram_planner.entities.plan_request import PlanRequest, ValidationRequest
from vram_planner.interface_adapters.health_controller import HealthController
from vram_planner.interface_adapters.plan_controller import PlanController


class API:
    def __init__(self, plan_controller: PlanController, health_controller: HealthController):
        self.plan_controller = plan_controller
        self.health_controller = health_controller
        self.app = FastAPI(title="vLLM VRAM Planner", version="0.1.0")

        self.get_plan_controller = lambda: self.plan_controller
        self.get_health_controller = lambda: self.health_controller

        self._register_routes()

    def _register_routes(self):
        def plan_handler(request: PlanRequest, controller=Depends(self.get_plan_controller)):
            return controller.plan(request)

        def breakdown_handler(request: PlanRequest, controller=Depends(self.get_plan_controller)):
            return controller.breakdown(request)

        def configurations_handler(request: PlanRequest, controller=Depends(self.get_plan_controller)):
            return controller.configurations(request)

        def recommendations_handler(request: PlanRequest, controller=Depends(self.get_plan_controller)):
            return controller.recommendations(request)

        def validate_handler(request: ValidationRequest, controller=Depends(self.get_plan_controller)):
            return controller.validate(request)

        def formats_handler(controller=Depends(self.get_plan_controller)):
            return controller.formats()

        def clear_cache_handler(controller=Depends(self.get_plan_controller)):
            return controller.clear_cache()

        def health_handler(controller=Depends(self.get_health_controller)):
            return controller.health()

        self.app.post("/v1/plan")(plan_handler)
        self.app.post("/v1/breakdown")(breakdown_handler)
        self.app.post("/v1/configurations")(configurations_handler)
        self.app.post("/v1/configurations/validate")(validate_handler)
        self.app.post("/v1/quantization/recommendations")(recommendations_handler)
        self.app.get("/v1/quantization/formats")(formats_handler)
        self.app.delete("/v1/cache")(clear_cache_handler)
        self.app.get("/health")(health_handler)
