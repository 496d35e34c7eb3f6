import logging
from datetime import date
from typing import Optional

from library_api.core.errors import InvalidDataError
from library_api.core.merge import forward_loan_patch, merge
from library_api.core.pagination import PagingPlan, paginate
from library_api.core.reports import aggregate
from library_api.core.temporal import filter_loans
from library_api.repositories.repositories import (BookRepository, LoanRepository,
                                                   ReviewRepository, UserRepository)
from library_api.schemas import schemas

logger = logging.getLogger("library.services")


def envelope(schema, records, plan: PagingPlan) -> schemas.Envelope:
    items = [schema.model_validate(r) for r in records]
    return schemas.Envelope[schema](items=items, paging=schemas.Paging(**plan.paging(len(items))))


class BookService:
    def __init__(self, books: BookRepository, loans: LoanRepository):
        self.books = books
        self.loans = loans

    def list_books(self, page_number: int, page_max_size: Optional[int]):
        plan = paginate(self.books.count(), page_number, page_max_size)
        return envelope(schemas.BookOut, self.books.list(plan.offset, plan.limit), plan)

    def get_book(self, book_id: int, page_number: int, page_max_size: Optional[int]):
        book = self.books.get_by_id(book_id)
        plan = paginate(self.loans.count(book_id=book_id), page_number, page_max_size)
        history = self.loans.list(book_id=book_id, offset=plan.offset, limit=plan.limit)
        return schemas.BookDetailsOut(
            **schemas.BookOut.model_validate(book).model_dump(),
            loan_history=envelope(schemas.BookLoanOut, history, plan),
        )

    def add_book(self, payload: schemas.BookIn):
        book = self.books.add(payload)
        logger.info(f"Created book id={book.id} title={book.title}")
        return schemas.BookOut.model_validate(book)

    def replace_book(self, book_id: int, payload: schemas.BookIn):
        self.books.full_update(book_id, payload)
        logger.info(f"Replaced book id={book_id}")

    def update_book(self, book_id: int, patch: schemas.BookPatch):
        current = self.books.get_by_id(book_id)
        self.books.full_update(book_id, merge(patch, current, schemas.BookIn))
        logger.info(f"Updated book id={book_id}")

    def delete_book(self, book_id: int):
        self.books.delete(book_id)
        logger.info(f"Deleted book id={book_id}")


class UserService:
    def __init__(self, users: UserRepository, loans: LoanRepository):
        self.users = users
        self.loans = loans

    def list_users(self, page_number: int, page_max_size: Optional[int]):
        plan = paginate(self.users.count(), page_number, page_max_size)
        return envelope(schemas.UserOut, self.users.list(plan.offset, plan.limit), plan)

    def get_user(self, user_id: int, page_number: int, page_max_size: Optional[int]):
        user = self.users.get_by_id(user_id)
        plan = paginate(self.loans.count(user_id=user_id), page_number, page_max_size)
        history = self.loans.list(user_id=user_id, offset=plan.offset, limit=plan.limit)
        return schemas.UserDetailsOut(
            **schemas.UserOut.model_validate(user).model_dump(),
            loan_history=envelope(schemas.UserLoanOut, history, plan),
        )

    def add_user(self, payload: schemas.UserIn):
        user = self.users.add(payload)
        logger.info(f"Created user id={user.id} email={user.email}")
        return schemas.UserOut.model_validate(user)

    def replace_user(self, user_id: int, payload: schemas.UserIn):
        self.users.full_update(user_id, payload)
        logger.info(f"Replaced user id={user_id}")

    def update_user(self, user_id: int, patch: schemas.UserPatch):
        current = self.users.get_by_id(user_id)
        self.users.full_update(user_id, merge(patch, current, schemas.UserIn))
        logger.info(f"Updated user id={user_id}")

    def delete_user(self, user_id: int):
        self.users.delete(user_id)
        logger.info(f"Deleted user id={user_id}")


class LoanService:
    def __init__(self, loans: LoanRepository):
        self.loans = loans

    def list_loans(self, page_number: int, page_max_size: Optional[int],
                   user_id: Optional[int] = None, book_id: Optional[int] = None,
                   on: Optional[date] = None, month_span: Optional[bool] = None,
                   today: Optional[date] = None):
        matching = filter_loans(self.loans.list(user_id=user_id, book_id=book_id),
                                on, month_span, today=today)
        plan = paginate(len(matching), page_number, page_max_size)
        return envelope(schemas.LoanOut, plan.slice(matching), plan)

    def get_loan(self, loan_id: int):
        return schemas.LoanOut.model_validate(self.loans.get_by_id(loan_id))

    def add_loan(self, payload: schemas.LoanIn):
        loan = self.loans.add(payload)
        logger.info(f"User {loan.user_id} borrowed book {loan.book_id} loan {loan.id}")
        return schemas.LoanOut.model_validate(loan)

    def replace_loan(self, loan_id: int, payload: schemas.LoanUpdate):
        self.loans.full_update(loan_id, payload)
        logger.info(f"Replaced loan id={loan_id}")

    def update_loan(self, loan_id: int, patch: schemas.LoanPatch):
        # No fallback to the stored loan here, see forward_loan_patch.
        self.loans.get_by_id(loan_id)
        self.loans.full_update(loan_id, forward_loan_patch(patch, schemas.LoanUpdate))
        logger.info(f"Updated loan id={loan_id}")

    def return_loan(self, loan_id: int, today: Optional[date] = None):
        loan = self.loans.get_by_id(loan_id)
        if loan.return_date is not None:
            raise InvalidDataError("Loan already returned")
        loan = self.loans.close(loan, today or date.today())
        logger.info(f"Loan {loan_id} returned")
        return schemas.LoanOut.model_validate(loan)

    def delete_loan(self, loan_id: int):
        self.loans.delete(loan_id)
        logger.info(f"Deleted loan id={loan_id}")

    def list_current_loans(self, user_id: int, page_number: int, page_max_size: Optional[int]):
        self.loans.require_user(user_id)
        current = filter_loans(self.loans.list(user_id=user_id), active_only=True)
        plan = paginate(len(current), page_number, page_max_size)
        return envelope(schemas.UserLoanOut, plan.slice(current), plan)

    def borrow_book(self, user_id: int, book_id: int, today: Optional[date] = None):
        loan = self.loans.add(schemas.LoanIn(user_id=user_id, book_id=book_id,
                                             loan_date=today or date.today()))
        logger.info(f"User {user_id} borrowed book {book_id} loan {loan.id}")
        return schemas.UserLoanOut.model_validate(loan)

    def return_book(self, user_id: int, book_id: int, today: Optional[date] = None):
        loan = self.loans.get_open(user_id, book_id)
        self.loans.close(loan, today or date.today())
        logger.info(f"User {user_id} returned book {book_id} loan {loan.id}")

    def replace_user_loan(self, user_id: int, book_id: int, payload: schemas.LoanUpdate):
        loan = self.loans.get_open(user_id, book_id)
        self.loans.full_update(loan.id, payload)
        logger.info(f"Replaced loan id={loan.id}")

    def update_user_loan(self, user_id: int, book_id: int, patch: schemas.LoanPatch):
        loan = self.loans.get_open(user_id, book_id)
        self.loans.full_update(loan.id, merge(patch, loan, schemas.LoanUpdate))
        logger.info(f"Updated loan id={loan.id}")


class ReviewService:
    def __init__(self, reviews: ReviewRepository):
        self.reviews = reviews

    def list_book_reviews(self, page_number: int, page_max_size: Optional[int]):
        """All reviews grouped per book, one envelope item per reviewed book."""
        grouped = {}
        for review in self.reviews.list():
            grouped.setdefault(review.book_id, []).append(review)
        rows = [grouped[book_id] for book_id in sorted(grouped)]
        plan = paginate(len(rows), page_number, page_max_size)
        items = [
            schemas.BookReviewsOut(
                book=schemas.BookOut.model_validate(group[0].book),
                reviews=[schemas.BookReviewOut.model_validate(r) for r in group],
            )
            for group in plan.slice(rows)
        ]
        return envelope(schemas.BookReviewsOut, items, plan)

    def list_user_reviews(self, user_id: int, page_number: int, page_max_size: Optional[int]):
        self.reviews.require_user(user_id)
        plan = paginate(self.reviews.count(user_id=user_id), page_number, page_max_size)
        records = self.reviews.list(user_id=user_id, offset=plan.offset, limit=plan.limit)
        return envelope(schemas.UserReviewOut, records, plan)

    def list_reviews_for_book(self, book_id: int, page_number: int, page_max_size: Optional[int]):
        self.reviews.require_book(book_id)
        plan = paginate(self.reviews.count(book_id=book_id), page_number, page_max_size)
        records = self.reviews.list(book_id=book_id, offset=plan.offset, limit=plan.limit)
        return envelope(schemas.BookReviewOut, records, plan)

    def get_review(self, user_id: int, book_id: int):
        return schemas.ReviewOut.model_validate(self.reviews.get(user_id, book_id))

    def add_review(self, user_id: int, book_id: int, payload: schemas.ReviewIn):
        review = self.reviews.add(user_id, book_id, payload)
        logger.info(f"User {user_id} reviewed book {book_id} rating={review.rating}")
        return schemas.ReviewOut.model_validate(review)

    def replace_review(self, user_id: int, book_id: int, payload: schemas.ReviewIn):
        self.reviews.full_update(user_id, book_id, payload)
        logger.info(f"Replaced review user={user_id} book={book_id}")

    def update_review(self, user_id: int, book_id: int, patch: schemas.ReviewPatch):
        current = self.reviews.get(user_id, book_id)
        self.reviews.full_update(user_id, book_id, merge(patch, current, schemas.ReviewIn))
        logger.info(f"Updated review user={user_id} book={book_id}")

    def delete_review(self, user_id: int, book_id: int):
        self.reviews.delete(user_id, book_id)
        logger.info(f"Deleted review user={user_id} book={book_id}")


class RecommendationService:
    def __init__(self, reviews: ReviewRepository):
        self.reviews = reviews

    def recommendations(self, user_id: int, page_number: int, page_max_size: Optional[int]):
        self.reviews.require_user(user_id)
        plan = paginate(self.reviews.count_rated_books(user_id), page_number, page_max_size)
        items = [
            schemas.RecommendationOut(book=schemas.BookOut.model_validate(book),
                                      average_rating=float(average_rating))
            for book, average_rating in self.reviews.rated_books(user_id, plan.offset, plan.limit)
        ]
        return envelope(schemas.RecommendationOut, items, plan)


class ReportingService:
    def __init__(self, loans: LoanRepository):
        self.loans = loans

    def users_report(self, page_number: int, page_max_size: Optional[int],
                     loan_date: Optional[date] = None, duration: Optional[int] = None,
                     today: Optional[date] = None):
        per_user, _ = aggregate(self.loans.list(), loan_date, duration, today)
        rows = [per_user[user_id] for user_id in sorted(per_user)]
        plan = paginate(len(rows), page_number, page_max_size)
        items = [
            schemas.UserReportOut(
                user=schemas.UserOut.model_validate(row.loans[0].user),
                loan_count=row.loan_count,
                total_duration_days=row.total_duration_days,
                average_duration_days=row.average_duration_days,
                user_loans=[schemas.UserLoanOut.model_validate(loan) for loan in row.loans],
            )
            for row in plan.slice(rows)
        ]
        return envelope(schemas.UserReportOut, items, plan)

    def books_report(self, page_number: int, page_max_size: Optional[int],
                     loan_date: Optional[date] = None, duration: Optional[int] = None,
                     today: Optional[date] = None):
        _, per_book = aggregate(self.loans.list(), loan_date, duration, today)
        rows = [per_book[book_id] for book_id in sorted(per_book)]
        plan = paginate(len(rows), page_number, page_max_size)
        items = [
            schemas.BookReportOut(
                book=schemas.BookOut.model_validate(row.loans[0].book),
                loan_count=row.loan_count,
                total_duration_days=row.total_duration_days,
                average_duration_days=row.average_duration_days,
                book_loans=[schemas.BookLoanOut.model_validate(loan) for loan in row.loans],
            )
            for row in plan.slice(rows)
        ]
        return envelope(schemas.BookReportOut, items, plan)
