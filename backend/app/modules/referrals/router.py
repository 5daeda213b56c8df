from __future__ import annotations

from fastapi import APIRouter, Path, Query

from app.api.deps import CurrentUser, DbDep
from .schemas import ReferralCode, ReferralLeaderboardEntry, ReferralStats, ReferralValidation
from .service import ReferralsService


router = APIRouter(prefix="/referrals", tags=["referrals"])


@router.get("/code", response_model=ReferralCode)
def get_referral_code(db: DbDep, current: CurrentUser):
    return ReferralsService(db).get_code(current)


@router.post("/code/regenerate", response_model=ReferralCode)
def regenerate_referral_code(db: DbDep, current: CurrentUser):
    return ReferralsService(db).regenerate_code(current)


@router.get("/validate/{code}", response_model=ReferralValidation)
def validate_referral_code(db: DbDep, code: str = Path(min_length=1, max_length=20)):
    return ReferralsService(db).validate_code(code)


@router.get("/stats", response_model=ReferralStats)
def referral_stats(db: DbDep, current: CurrentUser):
    return ReferralsService(db).stats(current)


@router.get("/leaderboard", response_model=list[ReferralLeaderboardEntry])
def referral_leaderboard(db: DbDep, limit: int = Query(default=10, ge=1, le=100)):
    return ReferralsService(db).leaderboard(limit)
