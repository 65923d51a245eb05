from fastapi import APIRouter, Request, status

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health():
    return {"status": "ok"}


@router.get("/session-cleanup", status_code=status.HTTP_200_OK)
async def session_cleanup_health(request: Request):
    """Health of the background expired-session sweep"""
    job = getattr(request.app.state, "session_cleanup_job", None)
    if job is None:
        return {"status": "disabled"}
    return job.health().model_dump(mode="json")
