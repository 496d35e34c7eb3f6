from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from library_api.core.database import get_db
from library_api.repositories.repositories import (BookRepository, LoanRepository,
                                                   ReviewRepository, UserRepository)
from library_api.services.services import (BookService, LoanService, RecommendationService,
                                           ReportingService, ReviewService, UserService)


class PageParams:
    def __init__(self, page_number: int = Query(1, alias="pageNumber"),
                 page_max_size: Optional[int] = Query(None, alias="pageMaxSize")):
        self.page_number = page_number
        self.page_max_size = page_max_size


def get_book_service(db: Session = Depends(get_db)) -> BookService:
    return BookService(BookRepository(db), LoanRepository(db))


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(UserRepository(db), LoanRepository(db))


def get_loan_service(db: Session = Depends(get_db)) -> LoanService:
    return LoanService(LoanRepository(db))


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(ReviewRepository(db))


def get_recommendation_service(db: Session = Depends(get_db)) -> RecommendationService:
    return RecommendationService(ReviewRepository(db))


def get_reporting_service(db: Session = Depends(get_db)) -> ReportingService:
    return ReportingService(LoanRepository(db))
