from pydantic import BaseModel, ConfigDict, conint, constr, field_validator
from datetime import date
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class Paging(BaseModel):
    page_number: int
    page_size: int
    page_max_size: int
    page_count: int
    total_number_of_items: int


class Envelope(BaseModel, Generic[T]):
    items: List[T]
    paging: Paging


class ErrorOut(BaseModel):
    code: int
    message: str


class PatchModel(BaseModel):
    """Base for PATCH payloads: an empty string means the field was left unset."""

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and v == "":
            return None
        return v


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Books

class BookIn(BaseModel):
    title: constr(min_length=1)
    author: constr(min_length=1)
    publish_date: date
    isbn: constr(min_length=1)

    @field_validator('title', 'author', 'isbn')
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class BookPatch(PatchModel):
    title: Optional[str] = None
    author: Optional[str] = None
    publish_date: Optional[date] = None
    isbn: Optional[str] = None


class BookOut(OrmModel):
    id: int
    title: str
    author: str
    publish_date: date
    isbn: str


# Users

class UserIn(BaseModel):
    name: constr(min_length=1)
    address: Optional[str] = None
    email: constr(min_length=5)

    @field_validator('email')
    @classmethod
    def ensure_email_shape(cls, v):
        v = v.strip()
        if '@' not in v:
            raise ValueError('email must contain @')
        return v


class UserPatch(PatchModel):
    name: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None


class UserOut(OrmModel):
    id: int
    name: str
    address: Optional[str] = None
    email: str


# Loans

class LoanIn(BaseModel):
    user_id: int
    book_id: int
    loan_date: date
    return_date: Optional[date] = None


class LoanUpdate(BaseModel):
    loan_date: date
    return_date: Optional[date] = None


class LoanPatch(PatchModel):
    loan_date: Optional[date] = None
    return_date: Optional[date] = None


class LoanOut(OrmModel):
    id: int
    user: UserOut
    book: BookOut
    loan_date: date
    return_date: Optional[date] = None


class UserLoanOut(OrmModel):
    id: int
    book: BookOut
    loan_date: date
    return_date: Optional[date] = None


class BookLoanOut(OrmModel):
    id: int
    user: UserOut
    loan_date: date
    return_date: Optional[date] = None


class BookDetailsOut(BookOut):
    loan_history: Envelope[BookLoanOut]


class UserDetailsOut(UserOut):
    loan_history: Envelope[UserLoanOut]


# Reviews

class ReviewIn(BaseModel):
    rating: conint(ge=0, le=5)


class ReviewPatch(PatchModel):
    rating: Optional[conint(ge=0, le=5)] = None


class ReviewOut(OrmModel):
    user: UserOut
    book: BookOut
    rating: int


class UserReviewOut(OrmModel):
    book: BookOut
    rating: int


class BookReviewOut(OrmModel):
    user: UserOut
    rating: int


class BookReviewsOut(BaseModel):
    book: BookOut
    reviews: List[BookReviewOut]


class RecommendationOut(BaseModel):
    book: BookOut
    average_rating: float


# Reports

class UserReportOut(BaseModel):
    user: UserOut
    loan_count: int
    total_duration_days: int
    average_duration_days: float
    user_loans: List[UserLoanOut]


class BookReportOut(BaseModel):
    book: BookOut
    loan_count: int
    total_duration_days: int
    average_duration_days: float
    book_loans: List[BookLoanOut]
