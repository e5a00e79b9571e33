"""API router for the BI report builder and visualizer."""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.bi.schemas import CatalogTable, FilterSet, ReportDefinition, ReportResult, ToggleFieldRequest
from app.bi.service import ReportService
from app.core.dependencies import get_report_service

router = APIRouter(prefix="/bi", tags=["bi"])


# ===== CATALOG ENDPOINTS =====


@router.get("/catalog", response_model=List[CatalogTable])
async def get_catalog(
    search: Optional[str] = Query(default=None, description="Filter fields by label or key"),
    service: ReportService = Depends(get_report_service),
) -> List[CatalogTable]:
    """Get the tables and fields available for reports."""
    return service.get_catalog(search)


@router.get("/default-filters", response_model=FilterSet)
async def get_default_filters(service: ReportService = Depends(get_report_service)) -> FilterSet:
    """Get the period a new report starts with."""
    return service.get_default_filters()


# ===== BUILDER ENDPOINTS =====


@router.post("/selection/toggle", response_model=ReportDefinition)
async def toggle_field(
    request: ToggleFieldRequest, service: ReportService = Depends(get_report_service)
) -> ReportDefinition:
    """Select a field, or deselect it when already selected."""
    return service.toggle_field(request)


@router.post("/plan")
async def preview_plan(
    definition: ReportDefinition, service: ReportService = Depends(get_report_service)
) -> Dict[str, Any]:
    """Preview the per-table queries a run would issue."""
    return service.preview_plan(definition)


# ===== VISUALIZER ENDPOINTS =====


@router.post("/run", response_model=ReportResult)
async def run_report(
    definition: ReportDefinition, service: ReportService = Depends(get_report_service)
) -> ReportResult:
    """Execute a report definition."""
    return await service.run_report(definition)


@router.post("/export/{fmt}")
async def export_report(
    fmt: str, definition: ReportDefinition, service: ReportService = Depends(get_report_service)
) -> Response:
    """Execute a report and download it as CSV or Excel."""
    content, media_type, file_name = await service.export_report(definition, fmt)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={file_name}"},
    )
