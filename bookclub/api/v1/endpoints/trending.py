"""
热度流水线 API 端点

- 搜索事件：由前端搜索请求写入（尽力而为，失败不影响搜索本身）
- 热门书目 / 读书会 trendingPool 读取
- 任务手动触发（与定时任务共用同一套 JobRunner 与锁；不额外引入鉴权）
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from bookclub.api.deps import (
    get_job_runner,
    get_search_event_service,
    get_trending_read_service,
)
from bookclub.schemas.trending_schema import (
    ClubTrendingPoolResponse,
    JobRunResponse,
    SearchEventRequest,
    SearchEventResponse,
    TrendingBooksResponse,
)
from bookclub.trending.runner import JobRunner
from bookclub.trending.service import SearchEventService, TrendingReadService

router = APIRouter()


@router.post("/search-events", response_model=SearchEventResponse, summary="记录一次搜索事件")
async def record_search_event(
    request: SearchEventRequest,
    service: SearchEventService = Depends(get_search_event_service),
) -> SearchEventResponse:
    # 事件日志只是统计用途：写入失败只告警，不向调用方报错
    try:
        recorded = await service.record(request.query)
    except Exception as exc:
        logger.warning(f"[SearchEvent] 记录搜索事件失败（不影响搜索返回）: {exc}")
        recorded = False
    return SearchEventResponse(recorded=recorded)


@router.get("/books", response_model=TrendingBooksResponse, summary="获取热门书目")
async def get_trending_books(
    limit: int = Query(10, ge=1, le=100, description="返回条数（默认10）"),
    service: TrendingReadService = Depends(get_trending_read_service),
) -> TrendingBooksResponse:
    try:
        payload = await service.top_books(limit)
        return TrendingBooksResponse(**payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"获取热门书目失败: {exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/clubs/{club_id}/pool", response_model=ClubTrendingPoolResponse, summary="获取读书会 trendingPool")
async def get_club_trending_pool(
    club_id: str,
    service: TrendingReadService = Depends(get_trending_read_service),
) -> ClubTrendingPoolResponse:
    try:
        payload = await service.club_pool(club_id)
        return ClubTrendingPoolResponse(**payload)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(f"获取 trendingPool 失败: club={club_id}, err={exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("/jobs/{job_name}/run", response_model=JobRunResponse, summary="手动执行一次任务")
async def run_job(
    job_name: str,
    runner: JobRunner = Depends(get_job_runner),
) -> JobRunResponse:
    try:
        result = await runner.run(job_name)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        # JobRunner 已记录堆栈
        raise HTTPException(status_code=500, detail=f"任务执行失败: {exc}") from exc

    if result is None:
        return JobRunResponse(job=job_name, skipped=True)
    return JobRunResponse(job=job_name, result=result.to_dict())
