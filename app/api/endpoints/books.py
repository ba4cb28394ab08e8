from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.core.logging import get_logger
from app.db.models import Book
from app.schemas.book import BookCreate, BookListResponse, BookRead, BookResponse, BookUpdate
from app.schemas.common import MessageResponse

logger = get_logger("api.books")

DUPLICATE_ISBN_MESSAGE = "Error: El ISBN ya existe en la base de datos."

router = APIRouter(
    prefix="/api/libros",
    tags=["books"],
)


def _duplicate_isbn(isbn: str, operation: str) -> HTTPException:
    logger.warning(
        "book_duplicate_isbn",
        extra={
            "operation": operation,
            "resource": "book",
            "isbn": isbn,
            "status_code": 400,
        },
    )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_ISBN_MESSAGE)


@router.get("", response_model=BookListResponse)
def list_books(db: Session = Depends(get_db)):
    books = db.query(Book).order_by(Book.created_at).all()
    return BookListResponse(books=[BookRead.model_validate(b) for b in books])


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
def create_book(payload: BookCreate, db: Session = Depends(get_db)):
    book = Book(
        title=payload.title,
        author=payload.author,
        isbn=payload.isbn,
        category=payload.category,
        publish_year=payload.publish_year,
        total_copies=payload.total_copies,
        # al inicio, todas las copias disponibles salvo que se indique stock
        stock=payload.stock if payload.stock is not None else payload.total_copies,
        description=payload.description,
        cover_image=payload.cover_image,
    )

    db.add(book)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _duplicate_isbn(payload.isbn, "book_create")

    db.refresh(book)
    logger.info(
        "book_created",
        extra={
            "operation": "book_create",
            "resource": "book",
            "book_id": book.id,
            "isbn": book.isbn,
            "status_code": 201,
        },
    )
    return BookResponse(book=BookRead.model_validate(book))


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: str, db: Session = Depends(get_db)):
    book = db.get(Book, book_id)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Libro no encontrado")
    return BookResponse(book=BookRead.model_validate(book))


@router.put("/{book_id}", response_model=BookResponse)
def update_book(book_id: str, payload: BookUpdate, db: Session = Depends(get_db)):
    book = db.get(Book, book_id)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Libro no encontrado")

    update_data = payload.model_dump(exclude_unset=True)

    # stock y total_copies se asignan tal cual, sin relación forzada entre ellos
    for field, value in update_data.items():
        setattr(book, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise _duplicate_isbn(update_data.get("isbn", book.isbn), "book_update")

    db.refresh(book)
    logger.info(
        "book_updated",
        extra={
            "operation": "book_update",
            "resource": "book",
            "book_id": book.id,
            "fields": sorted(update_data),
            "status_code": 200,
        },
    )
    return BookResponse(book=BookRead.model_validate(book))


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_book(book_id: str, db: Session = Depends(get_db)):
    book = db.get(Book, book_id)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Libro no encontrado")

    # Los préstamos que lo referencian quedan sin libro
    db.delete(book)
    db.commit()

    logger.info(
        "book_deleted",
        extra={
            "operation": "book_delete",
            "resource": "book",
            "book_id": book_id,
            "status_code": 200,
        },
    )
    return MessageResponse(message="Libro eliminado exitosamente")
