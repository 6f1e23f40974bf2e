from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.schemas.analysis import PortfolioSummaryRead
from app.services.analysis_service import portfolio_summary, summary_to_dict

router = APIRouter(prefix="/analysis", tags=["Analysis"])


@router.get("/abc", response_model=PortfolioSummaryRead)
def read_abc_summary(as_of: Optional[date] = Query(None), db: Session = Depends(get_db)):
    return summary_to_dict(portfolio_summary(db, as_of=as_of))
