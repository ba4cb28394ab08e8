from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.common import MAX_INT, CamelModel, InputModel, UtcDatetime


class BookCreate(InputModel):
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    isbn: str = Field(..., min_length=1, max_length=20)
    category: Optional[str] = None
    publish_year: Optional[int] = Field(None, ge=-MAX_INT, le=MAX_INT)
    total_copies: int = Field(1, ge=0, le=MAX_INT)
    stock: Optional[int] = Field(None, ge=0, le=MAX_INT)  # por defecto = total_copies
    description: Optional[str] = None
    cover_image: Optional[str] = None


class BookUpdate(InputModel):
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    isbn: Optional[str] = Field(None, min_length=1, max_length=20)
    category: Optional[str] = None
    publish_year: Optional[int] = Field(None, ge=-MAX_INT, le=MAX_INT)
    total_copies: Optional[int] = Field(None, ge=0, le=MAX_INT)
    stock: Optional[int] = Field(None, ge=0, le=MAX_INT)
    description: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("title", "author", "isbn", "total_copies", "stock")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class BookRead(CamelModel):
    id: str
    title: str
    author: str
    isbn: str
    category: Optional[str] = None
    publish_year: Optional[int] = None
    total_copies: int
    stock: int
    description: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: UtcDatetime


class BookResponse(CamelModel):
    success: bool = True
    book: BookRead


class BookListResponse(CamelModel):
    success: bool = True
    books: List[BookRead]
