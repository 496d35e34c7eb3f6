from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response

from library_api.api.deps import (PageParams, get_book_service, get_reporting_service,
                                  get_review_service)
from library_api.schemas import schemas
from library_api.services.services import BookService, ReportingService, ReviewService

router = APIRouter()


@router.get("/", response_model=Union[schemas.Envelope[schemas.BookReportOut],
                                      schemas.Envelope[schemas.BookOut]])
def list_books(page: PageParams = Depends(),
               loan_date: Optional[date] = Query(None, alias="loanDate"),
               duration: Optional[int] = Query(None),
               books: BookService = Depends(get_book_service),
               reporting: ReportingService = Depends(get_reporting_service)):
    if loan_date is None and duration is None:
        return books.list_books(page.page_number, page.page_max_size)
    return reporting.books_report(page.page_number, page.page_max_size, loan_date, duration)


@router.post("/", response_model=schemas.BookOut, status_code=201)
def create_book(book_in: schemas.BookIn, books: BookService = Depends(get_book_service)):
    return books.add_book(book_in)


# Declared before /{book_id} so "reviews" is not parsed as an id
@router.get("/reviews", response_model=schemas.Envelope[schemas.BookReviewsOut])
def list_book_reviews(page: PageParams = Depends(),
                      reviews: ReviewService = Depends(get_review_service)):
    return reviews.list_book_reviews(page.page_number, page.page_max_size)


@router.get("/{book_id}", response_model=schemas.BookDetailsOut)
def read_book(book_id: int, page: PageParams = Depends(),
              books: BookService = Depends(get_book_service)):
    return books.get_book(book_id, page.page_number, page.page_max_size)


@router.put("/{book_id}", status_code=204)
def replace_book(book_id: int, book_in: schemas.BookIn,
                 books: BookService = Depends(get_book_service)):
    books.replace_book(book_id, book_in)
    return Response(status_code=204)


@router.patch("/{book_id}", status_code=204)
def update_book(book_id: int, book_patch: schemas.BookPatch,
                books: BookService = Depends(get_book_service)):
    books.update_book(book_id, book_patch)
    return Response(status_code=204)


@router.delete("/{book_id}", status_code=204)
def delete_book(book_id: int, books: BookService = Depends(get_book_service)):
    books.delete_book(book_id)
    return Response(status_code=204)


@router.get("/{book_id}/reviews", response_model=schemas.Envelope[schemas.BookReviewOut])
def list_reviews_for_book(book_id: int, page: PageParams = Depends(),
                          reviews: ReviewService = Depends(get_review_service)):
    return reviews.list_reviews_for_book(book_id, page.page_number, page.page_max_size)


@router.get("/{book_id}/reviews/{user_id}", response_model=schemas.ReviewOut)
def read_review(book_id: int, user_id: int, reviews: ReviewService = Depends(get_review_service)):
    return reviews.get_review(user_id, book_id)


@router.post("/{book_id}/reviews/{user_id}", response_model=schemas.ReviewOut, status_code=201)
def create_review(book_id: int, user_id: int, review_in: schemas.ReviewIn,
                  reviews: ReviewService = Depends(get_review_service)):
    return reviews.add_review(user_id, book_id, review_in)


@router.put("/{book_id}/reviews/{user_id}", status_code=204)
def replace_review(book_id: int, user_id: int, review_in: schemas.ReviewIn,
                   reviews: ReviewService = Depends(get_review_service)):
    reviews.replace_review(user_id, book_id, review_in)
    return Response(status_code=204)


@router.patch("/{book_id}/reviews/{user_id}", status_code=204)
def update_review(book_id: int, user_id: int, review_patch: schemas.ReviewPatch,
                  reviews: ReviewService = Depends(get_review_service)):
    reviews.update_review(user_id, book_id, review_patch)
    return Response(status_code=204)


@router.delete("/{book_id}/reviews/{user_id}", status_code=204)
def delete_review(book_id: int, user_id: int, reviews: ReviewService = Depends(get_review_service)):
    reviews.delete_review(user_id, book_id)
    return Response(status_code=204)
