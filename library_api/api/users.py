from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response

from library_api.api.deps import (PageParams, get_loan_service, get_recommendation_service,
                                  get_reporting_service, get_review_service, get_user_service)
from library_api.schemas import schemas
from library_api.services.services import (LoanService, RecommendationService, ReportingService,
                                           ReviewService, UserService)

router = APIRouter()


@router.get("/", response_model=Union[schemas.Envelope[schemas.UserReportOut],
                                      schemas.Envelope[schemas.UserOut]])
def list_users(page: PageParams = Depends(),
               loan_date: Optional[date] = Query(None, alias="loanDate"),
               duration: Optional[int] = Query(None),
               users: UserService = Depends(get_user_service),
               reporting: ReportingService = Depends(get_reporting_service)):
    if loan_date is None and duration is None:
        return users.list_users(page.page_number, page.page_max_size)
    return reporting.users_report(page.page_number, page.page_max_size, loan_date, duration)


@router.post("/", response_model=schemas.UserOut, status_code=201)
def create_user(user_in: schemas.UserIn, users: UserService = Depends(get_user_service)):
    return users.add_user(user_in)


@router.get("/{user_id}", response_model=schemas.UserDetailsOut)
def read_user(user_id: int, page: PageParams = Depends(),
              users: UserService = Depends(get_user_service)):
    return users.get_user(user_id, page.page_number, page.page_max_size)


@router.put("/{user_id}", status_code=204)
def replace_user(user_id: int, user_in: schemas.UserIn,
                 users: UserService = Depends(get_user_service)):
    users.replace_user(user_id, user_in)
    return Response(status_code=204)


@router.patch("/{user_id}", status_code=204)
def update_user(user_id: int, user_patch: schemas.UserPatch,
                users: UserService = Depends(get_user_service)):
    users.update_user(user_id, user_patch)
    return Response(status_code=204)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: int, users: UserService = Depends(get_user_service)):
    users.delete_user(user_id)
    return Response(status_code=204)


# Loans of a user

@router.get("/{user_id}/books", response_model=schemas.Envelope[schemas.UserLoanOut])
def list_current_loans(user_id: int, page: PageParams = Depends(),
                       loans: LoanService = Depends(get_loan_service)):
    return loans.list_current_loans(user_id, page.page_number, page.page_max_size)


@router.post("/{user_id}/books/{book_id}", response_model=schemas.UserLoanOut, status_code=201)
def borrow_book(user_id: int, book_id: int, loans: LoanService = Depends(get_loan_service)):
    return loans.borrow_book(user_id, book_id)


@router.put("/{user_id}/books/{book_id}", status_code=204)
def replace_user_loan(user_id: int, book_id: int, loan_in: schemas.LoanUpdate,
                      loans: LoanService = Depends(get_loan_service)):
    loans.replace_user_loan(user_id, book_id, loan_in)
    return Response(status_code=204)


@router.patch("/{user_id}/books/{book_id}", status_code=204)
def update_user_loan(user_id: int, book_id: int, loan_patch: schemas.LoanPatch,
                     loans: LoanService = Depends(get_loan_service)):
    loans.update_user_loan(user_id, book_id, loan_patch)
    return Response(status_code=204)


@router.delete("/{user_id}/books/{book_id}", status_code=204)
def return_book(user_id: int, book_id: int, loans: LoanService = Depends(get_loan_service)):
    loans.return_book(user_id, book_id)
    return Response(status_code=204)


# Reviews of a user

@router.get("/{user_id}/reviews", response_model=schemas.Envelope[schemas.UserReviewOut])
def list_user_reviews(user_id: int, page: PageParams = Depends(),
                      reviews: ReviewService = Depends(get_review_service)):
    return reviews.list_user_reviews(user_id, page.page_number, page.page_max_size)


@router.get("/{user_id}/reviews/{book_id}", response_model=schemas.ReviewOut)
def read_user_review(user_id: int, book_id: int,
                     reviews: ReviewService = Depends(get_review_service)):
    return reviews.get_review(user_id, book_id)


@router.post("/{user_id}/reviews/{book_id}", response_model=schemas.ReviewOut, status_code=201)
def create_user_review(user_id: int, book_id: int, review_in: schemas.ReviewIn,
                       reviews: ReviewService = Depends(get_review_service)):
    return reviews.add_review(user_id, book_id, review_in)


@router.put("/{user_id}/reviews/{book_id}", status_code=204)
def replace_user_review(user_id: int, book_id: int, review_in: schemas.ReviewIn,
                        reviews: ReviewService = Depends(get_review_service)):
    reviews.replace_review(user_id, book_id, review_in)
    return Response(status_code=204)


@router.patch("/{user_id}/reviews/{book_id}", status_code=204)
def update_user_review(user_id: int, book_id: int, review_patch: schemas.ReviewPatch,
                       reviews: ReviewService = Depends(get_review_service)):
    reviews.update_review(user_id, book_id, review_patch)
    return Response(status_code=204)


@router.delete("/{user_id}/reviews/{book_id}", status_code=204)
def delete_user_review(user_id: int, book_id: int,
                       reviews: ReviewService = Depends(get_review_service)):
    reviews.delete_review(user_id, book_id)
    return Response(status_code=204)


@router.get("/{user_id}/recommendations", response_model=schemas.Envelope[schemas.RecommendationOut])
def list_recommendations(user_id: int, page: PageParams = Depends(),
                         recommendations: RecommendationService = Depends(get_recommendation_service)):
    return recommendations.recommendations(user_id, page.page_number, page.page_max_size)
