from fastapi import APIRouter, FastAPI

from nextwatch.core.control.observer_control import ObserverControl


def build_control_router(control: ObserverControl) -> APIRouter:
    # Handlers must run on the observer's event loop.
    router = APIRouter(prefix="/observer/v1", tags=["observer"])

    @router.get("/state")
    async def get_state():
        return {
            "phase": control.phase.value,
            "route_phase": control.route_phase.value,
            "ready_emitted": control.ready_emitted,
            "mutation_count": control.mutation_count,
            "state": control.state.to_dict(),
        }

    @router.get("/config")
    async def get_config():
        return control.config.to_dict()

    @router.get("/route")
    async def get_route():
        return {"route": control.get_current_route()}

    @router.post("/check")
    async def force_check():
        return {"ready": control.force_check(), "state": control.state.to_dict()}

    @router.post("/ready")
    async def force_ready():
        control.force_ready()
        return {"status": "ok", "ready_emitted": control.ready_emitted}

    @router.post("/detect")
    async def detect_framework():
        return {"framework_detected": control.detect_framework()}

    return router


def create_control_app(control: ObserverControl) -> FastAPI:
    app = FastAPI(title="nextwatch control")
    app.include_router(build_control_router(control))
    return app
