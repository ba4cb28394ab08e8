from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.core.logging import get_logger
from app.db.models import DEFAULT_ROLE, Loan
from app.schemas.common import MessageResponse
from app.schemas.loan import (
    LoanCreate,
    LoanListResponse,
    LoanResponse,
    OverdueJobResponse,
)
from app.services.loan_service import (
    create_loan,
    enrich_loan,
    enrich_loans,
    mark_overdue_loans,
    return_loan,
)

logger = get_logger("api.loans")


router = APIRouter(
    prefix="/api/prestamos",
    tags=["loans"],
)


def _get_loan_or_404(db: Session, loan_id: str) -> Loan:
    loan = db.get(Loan, loan_id)
    if not loan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Préstamo no encontrado")
    return loan


# ---- Listar préstamos (según rol) ----
@router.get("", response_model=LoanListResponse)
def list_loans(
    user_id: Optional[str] = Query(None, alias="userId"),
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    query = db.query(Loan)

    # Un "user" solo ve SUS préstamos; cualquier otro rol ve todos
    if role == DEFAULT_ROLE:
        query = query.filter(Loan.user_id == user_id)

    loans = query.order_by(Loan.created_at).all()
    return LoanListResponse(loans=enrich_loans(db, loans))


# ---- Job manual para marcar OVERDUE ---- (debe ir antes de loan_id)
@router.post("/run-overdue-job", response_model=OverdueJobResponse)
def run_overdue_job(db: Session = Depends(get_db)):
    """
    Busca todos los préstamos ACTIVE cuya due_date ya pasó
    y los marca como OVERDUE.
    """
    updated_count = mark_overdue_loans(db)

    logger.info(
        "loan_overdue_job",
        extra={
            "operation": "loan_overdue_job",
            "resource": "loan",
            "updated_count": updated_count,
            "status_code": 200,
        },
    )
    return OverdueJobResponse(updated=updated_count)


# ---- Detalle de un préstamo ----
@router.get("/{loan_id}", response_model=LoanResponse)
def get_loan(loan_id: str, db: Session = Depends(get_db)):
    loan = _get_loan_or_404(db, loan_id)
    return LoanResponse(loan=enrich_loan(db, loan))


# ---- Crear préstamo ----
@router.post("", response_model=LoanResponse)
def create_loan_endpoint(payload: LoanCreate, db: Session = Depends(get_db)):
    loan = create_loan(db, payload)

    logger.info(
        "loan_created",
        extra={
            "operation": "loan_create",
            "resource": "loan",
            "loan_id": loan.id,
            "book_id": loan.book_id,
            "user_id": loan.user_id,
            "status_code": 200,
            "new_status": loan.status.value,
        },
    )
    return LoanResponse(loan=enrich_loan(db, loan))


# ---- Devolución ----
@router.put("/{loan_id}/return", response_model=LoanResponse)
def return_loan_endpoint(loan_id: str, db: Session = Depends(get_db)):
    loan = _get_loan_or_404(db, loan_id)
    old_status = loan.status

    stock_restored = return_loan(db, loan)

    logger.info(
        "loan_returned",
        extra={
            "operation": "loan_return",
            "resource": "loan",
            "loan_id": loan.id,
            "book_id": loan.book_id,
            "old_status": old_status.value,
            "new_status": loan.status.value,
            "stock_restored": stock_restored,
            "status_code": 200,
        },
    )
    return LoanResponse(loan=enrich_loan(db, loan))


# ---- Borrado ----
@router.delete("/{loan_id}", response_model=MessageResponse)
def delete_loan(loan_id: str, db: Session = Depends(get_db)):
    loan = _get_loan_or_404(db, loan_id)

    # No repone stock: el borrado es administrativo
    db.delete(loan)
    db.commit()

    logger.info(
        "loan_deleted",
        extra={
            "operation": "loan_delete",
            "resource": "loan",
            "loan_id": loan_id,
            "status_code": 200,
        },
    )
    return MessageResponse(message="Préstamo eliminado")
