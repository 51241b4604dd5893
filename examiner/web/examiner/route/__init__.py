"""Route aggregation for the Examiner web application."""

from fastapi import APIRouter

from . import answer, auth, flag, invitation, monitor, session

router = APIRouter()
router.include_router(auth.router)
router.include_router(invitation.router)
router.include_router(session.router)
router.include_router(answer.router)
router.include_router(flag.router)
router.include_router(monitor.router)
