import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request

from .config import AppSettings, configure_logging, load_settings
from .errors import GenerationError, InvalidPlanError, WorkOrderConflictError
from .fault_mapping import FAULT_MAPPINGS
from .llm import GenerationClient
from .orchestrator import PlanningRun, RepairPlanner, new_run_id
from .schemas import DiagnosedFault
from .store import RecordStore


logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_planner(request: Request) -> RepairPlanner:
    return request.app.state.planner


def build_store(settings: AppSettings) -> RecordStore:
    return RecordStore(
        settings.database_path,
        technicians_container=settings.technicians_container,
        parts_container=settings.parts_container,
        work_orders_container=settings.work_orders_container,
    )


def build_generation_client(settings: AppSettings) -> GenerationClient:
    endpoint = settings.require_generation()
    return GenerationClient(
        endpoint.base_url,
        endpoint.model_id,
        api_key=settings.generation_api_key,
        temperature=settings.generation_temperature,
        max_output_tokens=settings.generation_max_tokens,
        timeout=settings.generation_timeout_s,
    )


@router.get("/health")
async def health() -> dict:
    return {"ok": True}


@router.get("/settings")
async def read_settings(settings: AppSettings = Depends(get_settings)) -> dict:
    return {"settings": settings.to_safe_dict()}


@router.get("/api/fault-types")
async def fault_types() -> dict:
    return {
        fault_type: {"skills": list(skills), "parts": list(parts)}
        for fault_type, (skills, parts) in sorted(FAULT_MAPPINGS.items())
    }


@router.post("/api/work-orders/plan", status_code=201)
async def plan_work_order(fault: DiagnosedFault, planner: RepairPlanner = Depends(get_planner)) -> dict:
    run = PlanningRun(run_id=new_run_id(), machine_id=fault.machine_id, fault_type=fault.fault_type)
    try:
        work_order = await planner.plan_and_create_work_order(fault, run=run)
    except InvalidPlanError as exc:
        raise HTTPException(
            status_code=502,
            detail={"error": "invalid_plan", "message": str(exc), "raw_text": exc.snippet()},
        )
    except WorkOrderConflictError as exc:
        raise HTTPException(status_code=409, detail={"error": "conflict", "message": str(exc)})
    except (GenerationError, httpx.HTTPError) as exc:
        raise HTTPException(status_code=502, detail={"error": "generation_failed", "message": str(exc)})
    return {"run_id": run.run_id, "stage": run.stage, "work_order": work_order.to_document()}


@router.get("/api/work-orders")
async def list_work_orders(
    status: Optional[str] = None,
    limit: int = 50,
    store: RecordStore = Depends(get_store),
) -> dict:
    orders = await store.list_work_orders(status=status, limit=limit)
    return {"work_orders": [wo.to_document() for wo in orders]}


@router.get("/api/work-orders/{work_order_id}")
async def get_work_order(work_order_id: str, store: RecordStore = Depends(get_store)) -> dict:
    work_order = await store.get_work_order(work_order_id)
    if work_order is None:
        raise HTTPException(status_code=404, detail="Work order not found")
    return work_order.to_document()


def create_app(
    settings: AppSettings,
    *,
    store: Optional[RecordStore] = None,
    generation_client: Optional[GenerationClient] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await app.state.store.init()
        logger.info("Repair planner ready, generation model %s", settings.generation_endpoint.model_id)
        try:
            yield
        finally:
            await app.state.generation_client.close()

    app = FastAPI(title="Repair Planner", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or build_store(settings)
    app.state.generation_client = generation_client or build_generation_client(settings)
    app.state.planner = RepairPlanner(app.state.store, app.state.generation_client)
    app.include_router(router)
    return app


def build_app() -> FastAPI:
    settings = load_settings()
    configure_logging(settings)
    return create_app(settings)


if __name__ == "__main__":
    import os
    import uvicorn

    settings = load_settings()
    reload_enabled = os.getenv("REPAIR_PLANNER_RELOAD", "").lower() in ("1", "true", "yes", "on")
    try:
        uvicorn.run(
            "repair_planner.main:build_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            reload=reload_enabled,
        )
    except KeyboardInterrupt:
        pass
