from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from library_api.core import errors
from library_api.core.errors import AlreadyExistsError, InvalidDataError, NotFoundError
from library_api.models import models
from library_api.schemas import schemas


def _check_loan_dates(loan_date: date, return_date: Optional[date]):
    if return_date is not None and return_date < loan_date:
        raise InvalidDataError(errors.LOAN_DATES_INVALID)


class BookRepository:
    def __init__(self, db: Session):
        self.db = db

    def count(self) -> int:
        return self.db.query(models.Book).count()

    def list(self, offset: int, limit: int):
        return self.db.query(models.Book).order_by(models.Book.id).offset(offset).limit(limit).all()

    def get_by_id(self, book_id: int) -> models.Book:
        book = self.db.query(models.Book).filter(models.Book.id == book_id).first()
        if not book:
            raise NotFoundError(errors.BOOK_NOT_FOUND)
        return book

    def add(self, payload: schemas.BookIn) -> models.Book:
        if self.db.query(models.Book).filter(models.Book.isbn == payload.isbn).first():
            raise AlreadyExistsError(errors.BOOK_ALREADY_EXISTS)
        book = models.Book(**payload.model_dump())
        self.db.add(book)
        self.db.commit()
        self.db.refresh(book)
        return book

    def full_update(self, book_id: int, payload: schemas.BookIn) -> models.Book:
        book = self.get_by_id(book_id)
        # ISBN stays unique when it changes
        if book.isbn != payload.isbn and \
                self.db.query(models.Book).filter(models.Book.isbn == payload.isbn).first():
            raise AlreadyExistsError(errors.BOOK_ALREADY_EXISTS)
        for k, v in payload.model_dump().items():
            setattr(book, k, v)
        self.db.add(book)
        self.db.commit()
        self.db.refresh(book)
        return book

    def delete(self, book_id: int):
        book = self.get_by_id(book_id)
        self.db.delete(book)
        self.db.commit()


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def count(self) -> int:
        return self.db.query(models.User).count()

    def list(self, offset: int, limit: int):
        return self.db.query(models.User).order_by(models.User.id).offset(offset).limit(limit).all()

    def get_by_id(self, user_id: int) -> models.User:
        user = self.db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            raise NotFoundError(errors.USER_NOT_FOUND)
        return user

    def add(self, payload: schemas.UserIn) -> models.User:
        if self.db.query(models.User).filter(models.User.email == payload.email).first():
            raise AlreadyExistsError(errors.USER_ALREADY_EXISTS)
        user = models.User(**payload.model_dump())
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def full_update(self, user_id: int, payload: schemas.UserIn) -> models.User:
        user = self.get_by_id(user_id)
        if user.email != payload.email and \
                self.db.query(models.User).filter(models.User.email == payload.email).first():
            raise AlreadyExistsError(errors.USER_ALREADY_EXISTS)
        for k, v in payload.model_dump().items():
            setattr(user, k, v)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user_id: int):
        user = self.get_by_id(user_id)
        self.db.delete(user)
        self.db.commit()


class LoanRepository:
    def __init__(self, db: Session):
        self.db = db

    def require_user(self, user_id: int):
        if not self.db.query(models.User.id).filter(models.User.id == user_id).first():
            raise NotFoundError(errors.USER_NOT_FOUND)

    def require_book(self, book_id: int):
        if not self.db.query(models.Book.id).filter(models.Book.id == book_id).first():
            raise NotFoundError(errors.BOOK_NOT_FOUND)

    def _query(self, user_id: Optional[int] = None, book_id: Optional[int] = None,
               active_only: bool = False):
        query = self.db.query(models.Loan)
        if user_id is not None:
            query = query.filter(models.Loan.user_id == user_id)
        if book_id is not None:
            query = query.filter(models.Loan.book_id == book_id)
        if active_only:
            query = query.filter(models.Loan.return_date.is_(None))
        return query

    def count(self, user_id: Optional[int] = None, book_id: Optional[int] = None,
              active_only: bool = False) -> int:
        return self._query(user_id, book_id, active_only).count()

    def list(self, user_id: Optional[int] = None, book_id: Optional[int] = None,
             active_only: bool = False, offset: Optional[int] = None, limit: Optional[int] = None):
        """Loans newest first."""
        query = self._query(user_id, book_id, active_only) \
            .order_by(models.Loan.loan_date.desc(), models.Loan.id.desc())
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_by_id(self, loan_id: int) -> models.Loan:
        loan = self.db.query(models.Loan).filter(models.Loan.id == loan_id).first()
        if not loan:
            raise NotFoundError(errors.LOAN_NOT_FOUND)
        return loan

    def get_open(self, user_id: int, book_id: int) -> models.Loan:
        self.require_user(user_id)
        self.require_book(book_id)
        loan = self._query(user_id, book_id, active_only=True).first()
        if not loan:
            raise NotFoundError(errors.LOAN_NOT_OPEN)
        return loan

    def add(self, payload: schemas.LoanIn) -> models.Loan:
        self.require_user(payload.user_id)
        self.require_book(payload.book_id)
        _check_loan_dates(payload.loan_date, payload.return_date)
        if payload.return_date is None and \
                self._query(payload.user_id, payload.book_id, active_only=True).first():
            raise AlreadyExistsError(errors.LOAN_ALREADY_EXISTS)
        loan = models.Loan(**payload.model_dump())
        self.db.add(loan)
        self.db.commit()
        self.db.refresh(loan)
        return loan

    def full_update(self, loan_id: int, payload: schemas.LoanUpdate) -> models.Loan:
        loan = self.get_by_id(loan_id)
        _check_loan_dates(payload.loan_date, payload.return_date)
        # Reopening must not leave a second open loan of the same book
        if payload.return_date is None:
            other_open = self._query(loan.user_id, loan.book_id, active_only=True) \
                .filter(models.Loan.id != loan.id).first()
            if other_open:
                raise AlreadyExistsError(errors.LOAN_ALREADY_EXISTS)
        loan.loan_date = payload.loan_date
        loan.return_date = payload.return_date
        self.db.add(loan)
        self.db.commit()
        self.db.refresh(loan)
        return loan

    def close(self, loan: models.Loan, return_date: date) -> models.Loan:
        _check_loan_dates(loan.loan_date, return_date)
        loan.return_date = return_date
        self.db.add(loan)
        self.db.commit()
        self.db.refresh(loan)
        return loan

    def delete(self, loan_id: int):
        loan = self.get_by_id(loan_id)
        self.db.delete(loan)
        self.db.commit()


class ReviewRepository:
    def __init__(self, db: Session):
        self.db = db

    def require_user(self, user_id: int):
        if not self.db.query(models.User.id).filter(models.User.id == user_id).first():
            raise NotFoundError(errors.USER_NOT_FOUND)

    def require_book(self, book_id: int):
        if not self.db.query(models.Book.id).filter(models.Book.id == book_id).first():
            raise NotFoundError(errors.BOOK_NOT_FOUND)

    def _query(self, user_id: Optional[int] = None, book_id: Optional[int] = None):
        query = self.db.query(models.Review)
        if user_id is not None:
            query = query.filter(models.Review.user_id == user_id)
        if book_id is not None:
            query = query.filter(models.Review.book_id == book_id)
        return query

    def count(self, user_id: Optional[int] = None, book_id: Optional[int] = None) -> int:
        return self._query(user_id, book_id).count()

    def list(self, user_id: Optional[int] = None, book_id: Optional[int] = None,
             offset: Optional[int] = None, limit: Optional[int] = None):
        query = self._query(user_id, book_id).order_by(models.Review.book_id, models.Review.user_id)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get(self, user_id: int, book_id: int) -> models.Review:
        self.require_user(user_id)
        self.require_book(book_id)
        review = self._query(user_id, book_id).first()
        if not review:
            raise NotFoundError(errors.REVIEW_NOT_FOUND)
        return review

    def add(self, user_id: int, book_id: int, payload: schemas.ReviewIn) -> models.Review:
        self.require_user(user_id)
        self.require_book(book_id)
        if self._query(user_id, book_id).first():
            raise AlreadyExistsError(errors.REVIEW_ALREADY_EXISTS)
        review = models.Review(user_id=user_id, book_id=book_id, rating=payload.rating)
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        return review

    def full_update(self, user_id: int, book_id: int, payload: schemas.ReviewIn) -> models.Review:
        review = self.get(user_id, book_id)
        review.rating = payload.rating
        self.db.add(review)
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete(self, user_id: int, book_id: int):
        review = self.get(user_id, book_id)
        self.db.delete(review)
        self.db.commit()

    def _ratings_query(self, user_id: int):
        reviewed = select(models.Review.book_id).where(models.Review.user_id == user_id)
        average = func.avg(models.Review.rating)
        return self.db.query(models.Book, average.label("average_rating")) \
            .join(models.Review, models.Review.book_id == models.Book.id) \
            .filter(models.Book.id.not_in(reviewed)) \
            .group_by(models.Book.id) \
            .order_by(average.desc(), models.Book.id)

    def count_rated_books(self, user_id: int) -> int:
        return self._ratings_query(user_id).count()

    def rated_books(self, user_id: int, offset: int, limit: int):
        """(book, average rating) pairs for books ``user_id`` has not reviewed, best first."""
        return self._ratings_query(user_id).offset(offset).limit(limit).all()
