"""FastAPI routes for the candidate dashboard and the live interview screen."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import AnswerReq, CandidateDetail, CandidateSummary, CreateCandidateReq, DraftReq, InterviewView
from interview import InterviewOrchestrator, NoActiveSession, SessionNotFound


router = APIRouter(prefix="/api")


def get_orchestrator(request: Request) -> InterviewOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="interview service not ready")
    return orchestrator


def _view(orchestrator: InterviewOrchestrator) -> InterviewView:
    try:
        return InterviewView(**orchestrator.view())
    except NoActiveSession as exc:
        raise HTTPException(status_code=409, detail="no active interview") from exc


@router.get("/candidates", response_model=List[CandidateSummary])
async def list_candidates(
    search: Optional[str] = None, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
) -> List[CandidateSummary]:
    return [CandidateSummary.from_session(session) for session in orchestrator.list_sessions(search)]


@router.post("/candidates", response_model=CandidateDetail, status_code=201)
async def create_candidate(
    req: CreateCandidateReq, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
) -> CandidateDetail:
    session = orchestrator.create_candidate(name=req.name, email=req.email, role=req.role, skills=req.skills)
    return CandidateDetail.from_session(session)


@router.get("/candidates/{session_id}", response_model=CandidateDetail)
async def fetch_candidate(session_id: str, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> CandidateDetail:
    try:
        return CandidateDetail.from_session(orchestrator.get(session_id))
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc


@router.post("/candidates/{session_id}/activate", response_model=InterviewView)
async def activate_candidate(
    session_id: str, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)
) -> InterviewView:
    try:
        await orchestrator.activate(session_id)
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc
    return _view(orchestrator)


@router.post("/candidates/{session_id}/reset", response_model=CandidateDetail)
async def reset_candidate(session_id: str, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> CandidateDetail:
    try:
        return CandidateDetail.from_session(orchestrator.request_reset(session_id))
    except SessionNotFound as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc


@router.get("/interview", response_model=InterviewView)
async def interview_state(orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> InterviewView:
    return _view(orchestrator)


@router.post("/interview/draft", response_model=InterviewView)
async def update_draft(req: DraftReq, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> InterviewView:
    view = _view(orchestrator)
    orchestrator.update_draft(req.text)
    return view


@router.post("/interview/answer", response_model=InterviewView)
async def submit_answer(req: AnswerReq, orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> InterviewView:
    try:
        await orchestrator.submit_answer(req.text)
    except NoActiveSession as exc:
        raise HTTPException(status_code=409, detail="no active interview") from exc
    return _view(orchestrator)


@router.post("/interview/pause", response_model=InterviewView)
async def pause_interview(orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> InterviewView:
    try:
        orchestrator.pause()
    except NoActiveSession as exc:
        raise HTTPException(status_code=409, detail="no active interview") from exc
    return _view(orchestrator)


@router.post("/interview/resume", response_model=InterviewView)
async def resume_interview(orchestrator: InterviewOrchestrator = Depends(get_orchestrator)) -> InterviewView:
    try:
        orchestrator.resume()
    except NoActiveSession as exc:
        raise HTTPException(status_code=409, detail="no active interview") from exc
    return _view(orchestrator)


__all__ = ["get_orchestrator", "router"]
