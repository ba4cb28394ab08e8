from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.db.models import Book, Loan, LoanStatus, User, utcnow
from app.schemas.book import BookRead
from app.schemas.common import as_utc
from app.schemas.loan import LoanCreate, LoanRead
from app.schemas.user import UserSummary

logger = get_logger("services.loans")


def enrich_loans(db: Session, loans: List[Loan]) -> List[LoanRead]:
    """
    Puebla cada préstamo con su libro y la proyección de su usuario.

    Dos consultas en total, sin importar cuántos préstamos haya.
    """
    book_ids = {loan.book_id for loan in loans}
    user_ids = {loan.user_id for loan in loans}

    books = {}
    if book_ids:
        books = {b.id: b for b in db.query(Book).filter(Book.id.in_(book_ids))}
    users = {}
    if user_ids:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids))}

    result: List[LoanRead] = []
    for loan in loans:
        read = LoanRead.model_validate(loan)
        book = books.get(loan.book_id)
        user = users.get(loan.user_id)
        read.book = BookRead.model_validate(book) if book else None
        read.user = UserSummary.model_validate(user) if user else None
        result.append(read)
    return result


def enrich_loan(db: Session, loan: Loan) -> LoanRead:
    return enrich_loans(db, [loan])[0]


def create_loan(db: Session, payload: LoanCreate) -> Loan:
    book = db.get(Book, payload.book_id)
    user = db.get(User, payload.user_id)

    if not book:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Libro no encontrado")
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Usuario no encontrado")

    # Descuento atómico: solo afecta la fila si todavía queda stock
    result = db.execute(
        update(Book)
        .where(Book.id == book.id, Book.stock > 0)
        .values(stock=Book.stock - 1)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.info(
            "loan_rejected",
            extra={
                "operation": "loan_create",
                "resource": "loan",
                "book_id": payload.book_id,
                "user_id": payload.user_id,
                "reason": "no_stock",
                "status_code": 400,
            },
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Libro no disponible")

    now = utcnow()
    loan = Loan(
        user_id=user.id,
        book_id=book.id,
        loan_date=now,
        due_date=as_utc(payload.due_date),
        status=LoanStatus.ACTIVE,
        created_at=now,
    )
    db.add(loan)
    # préstamo y descuento de stock en la misma transacción
    db.commit()
    db.refresh(loan)
    return loan


def return_loan(db: Session, loan: Loan) -> bool:
    """
    Marca el préstamo como devuelto y repone una copia del libro.

    Devuelve False si el libro ya no existe (la reposición se omite).
    """
    if loan.status == LoanStatus.RETURNED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El préstamo ya fue devuelto",
        )

    loan.return_date = utcnow()
    loan.status = LoanStatus.RETURNED

    result = db.execute(
        update(Book)
        .where(Book.id == loan.book_id)
        .values(stock=Book.stock + 1)
    )
    db.commit()
    db.refresh(loan)
    return result.rowcount > 0


def mark_overdue_loans(db: Session, now: Optional[datetime] = None) -> int:
    """
    Marca como OVERDUE todos los préstamos ACTIVE cuya due_date ya pasó.
    Devuelve el número de préstamos actualizados.
    """
    now = as_utc(now) if now else utcnow()

    result = db.execute(
        update(Loan)
        .where(Loan.status == LoanStatus.ACTIVE, Loan.due_date < now)
        .values(status=LoanStatus.OVERDUE)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount
