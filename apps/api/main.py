"""FastAPI application exposing inspection checklist and report APIs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

from packages.agent.gemini_client import GeminiClient
from packages.agent.planner import ChecklistPlanner
from packages.checklist import document
from packages.checklist.session import InspectionSession, SessionRegistry
from packages.common.errors import AuthError, ReportSaveError
from packages.common.ids import new_entity_id
from packages.common.models import (
    ApiError,
    AuthUser,
    ChecklistSection,
    Credentials,
    GeneratePrompt,
    InspectionCreateRequest,
    InspectionProfile,
    ItemNotesUpdate,
    ItemOptionUpdate,
    ItemStatus,
    ItemStatusUpdate,
    ItemVisibilityUpdate,
    PhotoUpload,
    ProgressReport,
    PropertyDetails,
    PropertyLookupRequest,
    SaveResponse,
)
from packages.common.paths import local_store_path
from packages.common.settings import Settings
from packages.storage.gateway import ReportGateway
from packages.storage.local import LocalReportStore
from packages.storage.supabase import SupabaseAuth, SupabaseReportStore

settings = Settings.from_env()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_gateway(config: Settings) -> ReportGateway:
    # One auth session per process: once anyone signs in, every save is owned by that user until sign-out.
    auth = SupabaseAuth(config.supabase_url, config.supabase_anon_key)
    local = LocalReportStore(local_store_path(config.data_dir))
    if not config.remote_configured:
        logger.warning("Supabase keys are missing. Reports are saved to local storage only.")
        return ReportGateway(local=local, auth=auth)
    remote = SupabaseReportStore(config.supabase_url, config.supabase_anon_key, auth=auth)
    return ReportGateway(local=local, remote=remote, auth=auth)


def share_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/?id={key}"


gateway = build_gateway(settings)
planner = ChecklistPlanner(GeminiClient(api_key=settings.gemini_api_key, model=settings.gemini_model))
sessions = SessionRegistry()

app = FastAPI(title="Inspectpad API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReportSaveError)
async def handle_save_error(request: Request, exc: ReportSaveError) -> JSONResponse:
    body = ApiError(code="save_failed", message=str(exc), retryable=True)
    return JSONResponse(status_code=502, content=body.model_dump())


@app.exception_handler(AuthError)
async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    body = ApiError(code="auth_failed", message=str(exc))
    return JSONResponse(status_code=401, content=body.model_dump())


def _session(inspection_id: str) -> InspectionSession:
    session = sessions.get(inspection_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Inspection not found: {inspection_id}")
    return session


def _apply(session: InspectionSession, operation, *args) -> InspectionProfile:
    if not session.apply(operation, *args):
        raise HTTPException(status_code=404, detail="Section or item not found")
    return session.profile


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "remote_store": "configured" if gateway.remote_enabled else "local-only"}


@app.get("/", response_model=None)
def open_shared_report(id: str | None = None) -> InspectionProfile | dict[str, str]:
    """Entry point for share links: ``/?id=<short or primary key>`` loads and hydrates the report."""
    if id is None:
        return {"status": "ok", "service": "Inspectpad API"}
    profile = gateway.load(id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Report not found or could not be loaded.")
    sessions.open(profile)
    return profile


@app.post("/property-details", response_model=PropertyDetails)
def lookup_property(request: PropertyLookupRequest) -> PropertyDetails:
    return planner.detect_property_details(request.address)


@app.post("/inspections", response_model=InspectionProfile, status_code=201)
def start_inspection(request: InspectionCreateRequest) -> InspectionProfile:
    sections = planner.generate_inspection_plan(
        request.address, request.property_type, request.floors, request.baths, request.bedrooms
    )
    user = gateway.auth.get_current_user() if gateway.auth else None
    inspector_name = "Guest Inspector"
    if user is not None:
        inspector_name = (user.email or "").split("@")[0] or "Inspector"

    profile = InspectionProfile(
        id=new_entity_id("inspection"),
        user_id=user.id if user else None,
        inspector_name=inspector_name,
        created_at=datetime.now(UTC),
        sections=sections,
        **request.model_dump(),
    )
    sessions.open(profile)
    return profile


@app.get("/inspections/{inspection_id}", response_model=InspectionProfile)
def get_inspection(inspection_id: str) -> InspectionProfile:
    return _session(inspection_id).profile


@app.get("/inspections/{inspection_id}/progress", response_model=ProgressReport)
def get_progress(inspection_id: str) -> ProgressReport:
    profile = _session(inspection_id).profile
    return ProgressReport(
        inspection_id=profile.id,
        progress=document.compute_progress(profile),
        summary=document.compute_summary_counts(profile),
        sections=[document.compute_section_progress(section) for section in profile.sections],
    )


@app.put("/inspections/{inspection_id}/sections/{section_id}/items/{item_id}/status", response_model=InspectionProfile)
def update_item_status(inspection_id: str, section_id: str, item_id: str, request: ItemStatusUpdate) -> InspectionProfile:
    return _apply(_session(inspection_id), document.set_item_status, section_id, item_id, request.status)


@app.put("/inspections/{inspection_id}/sections/{section_id}/items/{item_id}/option", response_model=InspectionProfile)
def update_item_option(inspection_id: str, section_id: str, item_id: str, request: ItemOptionUpdate) -> InspectionProfile:
    return _apply(_session(inspection_id), document.set_item_option, section_id, item_id, request.selected_option)


@app.put("/inspections/{inspection_id}/sections/{section_id}/items/{item_id}/notes", response_model=InspectionProfile)
def update_item_notes(inspection_id: str, section_id: str, item_id: str, request: ItemNotesUpdate) -> InspectionProfile:
    return _apply(_session(inspection_id), document.set_item_notes, section_id, item_id, request.notes)


@app.put(
    "/inspections/{inspection_id}/sections/{section_id}/items/{item_id}/visibility",
    response_model=InspectionProfile,
)
def update_item_visibility(
    inspection_id: str, section_id: str, item_id: str, request: ItemVisibilityUpdate
) -> InspectionProfile:
    return _apply(_session(inspection_id), document.set_item_visibility, section_id, item_id, request.is_hidden)


@app.post("/inspections/{inspection_id}/sections/{section_id}/show-hidden", response_model=InspectionProfile)
def show_hidden(inspection_id: str, section_id: str) -> InspectionProfile:
    return _apply(_session(inspection_id), document.show_hidden_items, section_id)


def _analyze_photo(inspection_id: str, section_id: str, item_id: str, image: str, label: str, status: ItemStatus) -> None:
    note = planner.analyze_image(image, label, status)
    sessions.patch(inspection_id, document.append_item_note, section_id, item_id, note)


@app.post("/inspections/{inspection_id}/sections/{section_id}/photos", response_model=InspectionProfile)
def add_photo(
    inspection_id: str, section_id: str, request: PhotoUpload, background_tasks: BackgroundTasks
) -> InspectionProfile:
    session = _session(inspection_id)
    profile = _apply(session, document.add_photo, section_id, request.image, request.item_id)
    if request.item_id and request.analyze:
        item = document.find_item(profile, section_id, request.item_id)
        background_tasks.add_task(
            _analyze_photo, inspection_id, section_id, request.item_id, request.image, item.label, item.status
        )
    return profile


@app.delete(
    "/inspections/{inspection_id}/sections/{section_id}/items/{item_id}/photos/{index}",
    response_model=InspectionProfile,
)
def delete_photo(inspection_id: str, section_id: str, item_id: str, index: int) -> InspectionProfile:
    session = _session(inspection_id)
    if document.find_item(session.profile, section_id, item_id) is None:
        raise HTTPException(status_code=404, detail="Section or item not found")
    # Out-of-range indexes are a no-op.
    session.apply(document.remove_photo, section_id, item_id, index)
    return session.profile


@app.post("/inspections/{inspection_id}/sections", response_model=InspectionProfile)
def add_section(inspection_id: str, request: GeneratePrompt) -> InspectionProfile:
    session = _session(inspection_id)
    section: ChecklistSection | None = planner.generate_section(request.prompt)
    if section is None:
        raise HTTPException(status_code=422, detail="Failed to create section.")
    return _apply(session, document.append_section, section)


@app.post("/inspections/{inspection_id}/sections/{section_id}/items", response_model=InspectionProfile)
def add_items(inspection_id: str, section_id: str, request: GeneratePrompt) -> InspectionProfile:
    session = _session(inspection_id)
    section = document.find_section(session.profile, section_id)
    if section is None:
        raise HTTPException(status_code=404, detail=f"Section not found: {section_id}")
    items = planner.generate_items(section.title, request.prompt)
    if not items:
        raise HTTPException(status_code=422, detail="Failed to create items.")
    if not sessions.patch(inspection_id, document.append_items, section_id, items):
        raise HTTPException(status_code=404, detail=f"Section not found: {section_id}")
    return session.profile


@app.post("/inspections/{inspection_id}/save", response_model=SaveResponse)
def save_report(inspection_id: str) -> SaveResponse:
    session = _session(inspection_id)
    result = gateway.save(session.profile)
    session.update_fields(saved_report_id=result.report_id, short_id=result.short_id)
    if result.warning:
        logger.warning("Report %s saved with warning: %s", result.report_id, result.warning)
    return SaveResponse(
        report_id=result.report_id,
        short_id=result.short_id,
        share_url=share_url(settings.public_base_url, result.short_id or result.report_id),
        warning=result.warning,
    )


@app.post("/auth/signup", response_model=AuthUser | None)
def sign_up(request: Credentials) -> AuthUser | None:
    return gateway.auth.sign_up(request.email, request.password)


@app.post("/auth/signin", response_model=AuthUser)
def sign_in(request: Credentials) -> AuthUser:
    return gateway.auth.sign_in(request.email, request.password)


@app.post("/auth/signout")
def sign_out() -> dict[str, str]:
    gateway.auth.sign_out()
    return {"status": "signed_out"}


@app.get("/auth/me", response_model=AuthUser | None)
def current_user() -> AuthUser | None:
    return gateway.auth.get_current_user()
