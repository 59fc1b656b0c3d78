"""
Scheduled job endpoints, called by the platform scheduler with Bearer CRON_SECRET.
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from partner_portal.core.deps import get_trial_service
from partner_portal.core.security import verify_cron_secret
from partner_portal.services.trial_service import TrialService


router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.post("/trial-check")
@router.get("/trial-check")
async def trial_check(svc: TrialService = Depends(get_trial_service)):
    """Move partners whose trial is ending or over to the next stage."""
    result = await svc.run_trial_check()
    return {"success": not result.errors, **asdict(result)}
