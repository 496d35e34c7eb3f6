import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from library_api.api import books, loans, users
from library_api.core.config import API_PREFIX, configure_logging
from library_api.core.database import Base, engine
from library_api.core.errors import ErrorKind, LibraryError

configure_logging()
logger = logging.getLogger("library")

Base.metadata.create_all(bind=engine)
app = FastAPI(title="Library API", version="1.0.0")
app.include_router(books.router, prefix=f"{API_PREFIX}/books", tags=["books"])
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["users"])
app.include_router(loans.router, prefix=f"{API_PREFIX}/loans", tags=["loans"])

STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_EXISTS: 409,
    ErrorKind.INVALID_DATA: 412,
}


@app.exception_handler(LibraryError)
async def handle_library_error(request: Request, exc: LibraryError):
    code = STATUS_CODES[exc.kind]
    logger.warning(f"{request.method} {request.url.path} -> {code}: {exc.message}")
    return JSONResponse(status_code=code, content={"code": code, "message": exc.message})


@app.get("/health")
def health():
    return {"status": "ok"}
