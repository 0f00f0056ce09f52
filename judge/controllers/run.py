import asyncio

from fastapi import APIRouter, Query

from judge.dependencies import Admission, Executor
from judge.models.execution import ExecutionLogResponse, RunRequest, RunResponse
from judge.pipeline import get_execution_log, run_submission

router = APIRouter(prefix="/api", tags=["run"])


@router.post("/run", response_model=RunResponse, response_model_exclude_none=True)
async def run_code(req: RunRequest, executor: Executor, admission: Admission) -> RunResponse:
    async with admission.slot():
        return await asyncio.to_thread(run_submission, req.submission(), req.cases(), executor)


@router.get("/executions", response_model=ExecutionLogResponse)
async def recent_executions(
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of entries to return"),
) -> ExecutionLogResponse:
    entries = get_execution_log(limit)
    return ExecutionLogResponse(entries=entries, count=len(entries))
