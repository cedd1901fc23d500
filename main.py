import os
import uvicorn

from vram_planner.frameworks_drivers.calculation_cache import CalculationCache
from vram_planner.frameworks_drivers.config import Config
from vram_planner.interface_adapters.api import API
from vram_planner.interface_adapters.health_controller import HealthController
from vram_planner.interface_adapters.plan_controller import PlanController
from vram_planner.shared.logger import Logger
from vram_planner.use_cases.plan_deployment import PlanDeployment

if __name__ == "__main__":
    logger = Logger.get(__name__)

    try:
        config = Config.load_or_default(os.environ.get("VRAM_PLANNER_CONFIG", "config.json"))

        # Override server port if set in environment
        if "VRAM_PLANNER_PORT" in os.environ:
            config.server.port = int(os.environ["VRAM_PLANNER_PORT"])

        # Instantiate dependencies
        cache = CalculationCache() if config.cache.enabled else None

        # Instantiate use cases
        plan_deployment = PlanDeployment(config, cache)

        # Instantiate controllers
        plan_controller = PlanController(plan_deployment)
        health_controller = HealthController(plan_deployment)

        # Instantiate API
        api = API(plan_controller, health_controller)

        logger.info("Starting vLLM VRAM Planner...")
        uvicorn.run(api.app, host=config.server.host, port=config.server.port)
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise
