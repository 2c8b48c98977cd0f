from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from survey_api.database import get_db
from survey_api.services import analytics
from survey_api.services.authz import require_admin

router = APIRouter(prefix="/api/analytics", tags=["analytics"], dependencies=[Depends(require_admin)])

@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    return {"success": True, "data": analytics.dashboard(db)}

@router.get("/section/{section}")
def section(section: str, db: Session = Depends(get_db)):
    return {"success": True, "section": section, "data": analytics.section(db, section)}
