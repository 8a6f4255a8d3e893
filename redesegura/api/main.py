"""
RedeSegura - REST API

FastAPI application exposing report submission, administrator validation,
hot-zone clusters, dashboard statistics and certificates.

The identity provider sits in front of this service and forwards the acting
user in the X-User-Id / X-User-Role headers.

Run with: uvicorn redesegura.api.main:app --reload
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List

from fastapi import FastAPI, Depends, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from redesegura import __version__
from redesegura.analysis.certificates import CertificateService
from redesegura.analysis.dashboard import get_dashboard_stats
from redesegura.analysis.report_clustering import (
    cluster_reports,
    filter_reports,
    top_areas,
)
from redesegura.core.config import settings
from redesegura.core.constants import (
    HAZARD_TYPES,
    ReportStatus,
    Severity,
    Tier,
    UserRole,
)
from redesegura.core.exceptions import (
    RedeSeguraError,
    ValidationError,
    AuthorizationError,
    StateConflictError,
    RateLimitError,
    NotFoundError,
)
from redesegura.core.logging import setup_logging
from redesegura.crowdsource.models import Actor, Report, ReportDraft
from redesegura.crowdsource.report_handler import ReportHandler
from redesegura.crowdsource.scoring import (
    get_ai_classification,
    get_educational_message,
)
from redesegura.database.store import ReportStore, InMemoryReportStore

logger = logging.getLogger(__name__)

# Most specific first: AuthorizationError is a ValidationError
ERROR_STATUS_CODES = [
    (AuthorizationError, 403),
    (ValidationError, 422),
    (NotFoundError, 404),
    (StateConflictError, 409),
    (RateLimitError, 429),
]


# ============================================================================
# Pydantic Models
# ============================================================================

class ReportCreateRequest(BaseModel):
    """Request to submit a hazard report."""
    type: str = Field(..., description="One of the hazard types")
    severity: str = Field(default="MEDIUM", description="LOW, MEDIUM or HIGH")
    description: str = ""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address_text: Optional[str] = None
    photo_url: Optional[str] = None


class ValidateRequest(BaseModel):
    """Administrator decision to validate a report."""
    severity: Optional[str] = Field(default=None, description="Severity override")


class ReportResponse(BaseModel):
    """Hazard report."""
    id: str
    user_id: str
    type: str
    severity: str
    risk_score: int
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address_text: Optional[str] = None
    description: str
    photo_url: Optional[str] = None
    ai_classification: Optional[str] = None
    created_at: str
    validated_at: Optional[str] = None
    validated_by: Optional[str] = None


class SubmissionResponse(BaseModel):
    """Created report plus the safety tip shown to the citizen."""
    report: ReportResponse
    educational_message: str
    remaining_today: int


class ReportListResponse(BaseModel):
    """List of reports."""
    count: int
    reports: List[ReportResponse]


class ClusterResponse(BaseModel):
    """Hot-zone cluster."""
    latitude: float
    longitude: float
    count: int
    severity: str
    address: str
    report_ids: List[str]


class ClusterListResponse(BaseModel):
    count: int
    clusters: List[ClusterResponse]


class AreaResponse(BaseModel):
    area: str
    count: int


class ProgressResponse(BaseModel):
    """Citizen dashboard: points and certificate level."""
    user_id: str
    points: int
    current_tier: Optional[str] = None
    next_tier: Optional[str] = None
    progress_percent: float
    validated_count: int
    high_severity_count: int
    achieved_tiers: List[str]


class CertificateResponse(BaseModel):
    user_id: str
    tier: str
    verify_code: str
    issued_at: str


class HazardTypeResponse(BaseModel):
    type: str
    classification: str
    educational_message: str


class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    store: str
    environment: str


# ============================================================================
# Helper Functions
# ============================================================================

def _report_response(report: Report) -> ReportResponse:
    return ReportResponse(**report.to_dict())


def _parse_enum(enum_cls, value: Optional[str], field: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}", {"field": field}) from None


def build_store() -> ReportStore:
    """Store selected by configuration: SQL when DATABASE_URL is set."""
    if settings.database_url:
        from redesegura.database.connection import DatabaseConnection
        from redesegura.database.sql_store import SQLReportStore

        db = DatabaseConnection(settings.database_url)
        db.create_tables()
        return SQLReportStore(db)
    return InMemoryReportStore()


# ============================================================================
# Application
# ============================================================================

def create_app(store: Optional[ReportStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Report store (default: chosen from settings)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="RedeSegura",
        description="Preventive reporting of hazards near the electrical grid",
        debug=settings.debug,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    report_store = store or build_store()
    handler = ReportHandler(report_store)
    certificates = CertificateService(report_store)

    app.state.store = report_store
    app.state.handler = handler

    @app.exception_handler(RedeSeguraError)
    async def domain_error_handler(request: Request, exc: RedeSeguraError):
        status_code = 400
        for error_cls, code in ERROR_STATUS_CODES:
            if isinstance(exc, error_cls):
                status_code = code
                break
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    def get_actor(
        x_user_id: Optional[str] = Header(default=None),
        x_user_role: str = Header(default="USER"),
        x_user_name: str = Header(default=""),
    ) -> Actor:
        """Acting user forwarded by the identity provider."""
        if not x_user_id:
            raise HTTPException(status_code=401, detail="X-User-Id header required")
        role = _parse_enum(UserRole, x_user_role, "role")
        actor = Actor(user_id=x_user_id, role=role)
        handler.ensure_profile(actor, name=x_user_name)
        return actor

    def map_reports(
        hazard_type: Optional[str],
        severity: Optional[str],
        status: Optional[str],
    ) -> List[Report]:
        """Geolocated reports matching the map filters."""
        return filter_reports(
            handler.list_reports(with_location=True),
            hazard_type=hazard_type,
            severity=_parse_enum(Severity, severity, "severity"),
            status=_parse_enum(ReportStatus, status, "status"),
        )

    # ------------------------------------------------------------------------
    # System Routes
    # ------------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """API health check."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            timestamp=datetime.now(timezone.utc).isoformat(),
            store=type(report_store).__name__,
            environment=settings.app_env,
        )

    @app.get("/api/v1/hazards", response_model=List[HazardTypeResponse], tags=["Reference"])
    async def list_hazard_types():
        """Hazard types with their classification and safety tip."""
        return [
            HazardTypeResponse(
                type=hazard,
                classification=get_ai_classification(hazard),
                educational_message=get_educational_message(hazard),
            )
            for hazard in HAZARD_TYPES
        ]

    # ------------------------------------------------------------------------
    # Report Routes
    # ------------------------------------------------------------------------

    @app.post(
        "/api/v1/reports",
        response_model=SubmissionResponse,
        status_code=201,
        tags=["Reports"],
    )
    def submit_report(request: ReportCreateRequest, actor: Actor = Depends(get_actor)):
        """
        Submit a hazard report.

        The report is scored, classified and queued as PENDING.
        """
        draft = ReportDraft(
            type=request.type,
            severity=request.severity,
            description=request.description,
            latitude=request.latitude,
            longitude=request.longitude,
            address_text=request.address_text,
            photo_url=request.photo_url,
        )
        report = handler.submit(actor, draft)
        return SubmissionResponse(
            report=_report_response(report),
            educational_message=get_educational_message(report.type),
            remaining_today=handler.limiter.remaining(actor.user_id),
        )

    @app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
    def list_reports(
        user_id: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
        hazard_type: Optional[str] = Query(default=None),
        severity: Optional[str] = Query(default=None),
    ):
        """List reports, newest first."""
        reports = handler.list_reports(
            user_id=user_id,
            status=_parse_enum(ReportStatus, status, "status"),
        )
        reports = filter_reports(
            reports,
            hazard_type=hazard_type,
            severity=_parse_enum(Severity, severity, "severity"),
        )
        return ReportListResponse(
            count=len(reports),
            reports=[_report_response(r) for r in reports],
        )

    @app.get("/api/v1/reports/pending", response_model=ReportListResponse, tags=["Validation"])
    def list_pending_reports(actor: Actor = Depends(get_actor)):
        """Validation queue (administrators only)."""
        handler.require_admin(actor)
        reports = handler.get_pending_reports()
        return ReportListResponse(
            count=len(reports),
            reports=[_report_response(r) for r in reports],
        )

    @app.get("/api/v1/reports/{report_id}", response_model=ReportResponse, tags=["Reports"])
    def get_report(report_id: str):
        """Get report details."""
        return _report_response(handler.get_report(report_id))

    @app.post(
        "/api/v1/reports/{report_id}/validate",
        response_model=ReportResponse,
        tags=["Validation"],
    )
    def validate_report(
        report_id: str,
        request: Optional[ValidateRequest] = None,
        actor: Actor = Depends(get_actor),
    ):
        """Validate a pending report; the owner earns points."""
        override = request.severity if request else None
        report = handler.validate(report_id, actor, severity_override=override)
        return _report_response(report)

    @app.post(
        "/api/v1/reports/{report_id}/reject",
        response_model=ReportResponse,
        tags=["Validation"],
    )
    def reject_report(report_id: str, actor: Actor = Depends(get_actor)):
        """Reject a pending report."""
        return _report_response(handler.reject(report_id, actor))

    # ------------------------------------------------------------------------
    # Map & Statistics Routes
    # ------------------------------------------------------------------------

    @app.get("/api/v1/map/clusters", response_model=ClusterListResponse, tags=["Map"])
    def get_clusters(
        hazard_type: Optional[str] = Query(default=None),
        severity: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
        limit: int = Query(default=settings.map_cluster_limit, ge=1, le=100),
    ):
        """Hot-zone clusters of geolocated reports."""
        reports = map_reports(hazard_type, severity, status)
        clusters = cluster_reports(reports, limit=limit)
        return ClusterListResponse(
            count=len(clusters),
            clusters=[ClusterResponse(**c.to_dict()) for c in clusters],
        )

    @app.get("/api/v1/map/areas", response_model=List[AreaResponse], tags=["Map"])
    def get_top_areas(
        hazard_type: Optional[str] = Query(default=None),
        severity: Optional[str] = Query(default=None),
        status: Optional[str] = Query(default=None),
        limit: int = Query(default=settings.summary_cluster_limit, ge=1, le=50),
    ):
        """Areas with the most reports among those shown on the map."""
        areas = top_areas(map_reports(hazard_type, severity, status), limit=limit)
        return [AreaResponse(**a.to_dict()) for a in areas]

    @app.get("/api/v1/stats", tags=["Statistics"])
    def get_stats(days: Optional[int] = Query(default=None, ge=1, le=365)):
        """Dashboard statistics, optionally for the last N days."""
        return get_dashboard_stats(handler.list_reports(), days=days)

    # ------------------------------------------------------------------------
    # Certificate Routes
    # ------------------------------------------------------------------------

    @app.get(
        "/api/v1/users/{user_id}/progress",
        response_model=ProgressResponse,
        tags=["Certificates"],
    )
    def get_progress(user_id: str):
        """Points, current tier and progress towards the next one."""
        profile = handler.get_profile(user_id)
        progress = certificates.progress(user_id)
        achieved = certificates.achieved(user_id)
        return ProgressResponse(
            user_id=user_id,
            points=profile.points,
            achieved_tiers=[t.value for t in Tier if t in achieved],
            **progress.to_dict(),
        )

    @app.get(
        "/api/v1/users/{user_id}/certificates",
        response_model=List[CertificateResponse],
        tags=["Certificates"],
    )
    def list_certificates(user_id: str):
        """Certificates already issued to a user."""
        handler.get_profile(user_id)
        return [CertificateResponse(**c.to_dict()) for c in certificates.list_certificates(user_id)]

    @app.post(
        "/api/v1/users/{user_id}/certificates/{tier}",
        response_model=CertificateResponse,
        tags=["Certificates"],
    )
    def issue_certificate(user_id: str, tier: str, actor: Actor = Depends(get_actor)):
        """Issue (or re-issue) a certificate for an achieved tier."""
        if actor.user_id != user_id and not actor.is_admin:
            raise AuthorizationError(
                "Certificates can only be issued to yourself",
                {"user_id": user_id},
            )
        certificate = certificates.issue(user_id, tier)
        return CertificateResponse(**certificate.to_dict())

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
