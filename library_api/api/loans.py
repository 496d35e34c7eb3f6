from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from library_api.api.deps import PageParams, get_loan_service
from library_api.schemas import schemas
from library_api.services.services import LoanService

router = APIRouter()


@router.get("/", response_model=schemas.Envelope[schemas.LoanOut])
def list_loans(page: PageParams = Depends(),
               user_id: Optional[int] = Query(None, alias="userID"),
               book_id: Optional[int] = Query(None, alias="bookID"),
               on: Optional[date] = Query(None, alias="date"),
               month_span: Optional[bool] = Query(None, alias="monthSpan"),
               loans: LoanService = Depends(get_loan_service)):
    return loans.list_loans(page.page_number, page.page_max_size, user_id, book_id, on, month_span)


@router.post("/", response_model=schemas.LoanOut, status_code=201)
def create_loan(loan_in: schemas.LoanIn, loans: LoanService = Depends(get_loan_service)):
    return loans.add_loan(loan_in)


@router.get("/{loan_id}", response_model=schemas.LoanOut)
def read_loan(loan_id: int, loans: LoanService = Depends(get_loan_service)):
    return loans.get_loan(loan_id)


@router.post("/{loan_id}/return", response_model=schemas.LoanOut)
def return_loan(loan_id: int, loans: LoanService = Depends(get_loan_service)):
    return loans.return_loan(loan_id)


@router.put("/{loan_id}", status_code=204)
def replace_loan(loan_id: int, loan_in: schemas.LoanUpdate,
                 loans: LoanService = Depends(get_loan_service)):
    loans.replace_loan(loan_id, loan_in)
    return Response(status_code=204)


@router.patch("/{loan_id}", status_code=204)
def update_loan(loan_id: int, loan_patch: schemas.LoanPatch,
                loans: LoanService = Depends(get_loan_service)):
    loans.update_loan(loan_id, loan_patch)
    return Response(status_code=204)


@router.delete("/{loan_id}", status_code=204)
def delete_loan(loan_id: int, loans: LoanService = Depends(get_loan_service)):
    loans.delete_loan(loan_id)
    return Response(status_code=204)
