from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request):
    sessions = getattr(request.app.state, "entry_sessions", None)
    return {
        "status": "ok",
        "open_sessions": len(sessions) if sessions is not None else 0,
    }
