from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from starlette.concurrency import run_in_threadpool
from supabase import Client

from dashboard.app.deps import CurrentUser, get_current_user, get_supabase
from dashboard.app.schemas.library import (
    BookCreate,
    BookResponse,
    BookSearchResult,
    BookStatusValue,
    BookUpdate,
)
from dashboard.services import books as book_service
from dashboard.services.records import format_timestamp, stringify_id

router = APIRouter(prefix="/books", tags=["books"])

_COLUMNS = {
    "bookTitle": "book_title",
    "author": "author",
    "bookCoverUrl": "book_cover_url",
    "status": "status",
    "rating": "rating",
}


def _book_from_row(row: dict[str, Any]) -> BookResponse:
    return BookResponse(
        id=stringify_id(row.get("id")),
        bookTitle=row.get("book_title") or "",
        author=row.get("author") or "",
        bookCoverUrl=row.get("book_cover_url"),
        status=row.get("status") or "Backlog",
        rating=row.get("rating"),
        startedReadingDate=format_timestamp(row.get("started_reading_date")),
        finishedReadingDate=format_timestamp(row.get("finished_reading_date")),
        createdAt=format_timestamp(row.get("created_at")),
    )


def _columns(payload: BookCreate | BookUpdate) -> dict[str, Any]:
    data = payload.model_dump(exclude_unset=isinstance(payload, BookUpdate))
    return {_COLUMNS[key]: value for key, value in data.items() if key in _COLUMNS}


@router.get("/", response_model=list[BookResponse])
async def list_books(
    status_filter: Optional[BookStatusValue] = Query(default=None, alias="status"),
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[BookResponse]:
    rows = await run_in_threadpool(book_service.list_books, supa, str(user.id), status_filter)
    return [_book_from_row(row) for row in rows]


@router.get("/search", response_model=list[BookSearchResult])
async def search_books(
    q: str = Query(..., min_length=1),
    limit: int = Query(default=5, ge=1, le=20),
) -> list[BookSearchResult]:
    docs = await run_in_threadpool(book_service.search_books, q, limit)
    results = []
    for doc in docs:
        formatted = book_service.format_book(doc)
        results.append(
            BookSearchResult(
                bookTitle=formatted["book_title"],
                author=formatted["author"],
                bookCoverUrl=formatted["book_cover_url"],
            )
        )
    return results


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> BookResponse:
    row = await run_in_threadpool(book_service.get_book, supa, str(user.id), book_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return _book_from_row(row)


@router.post("/", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def add_book(
    payload: BookCreate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> BookResponse:
    row = await run_in_threadpool(book_service.add_book, supa, str(user.id), _columns(payload))
    if row is None:
        raise HTTPException(status_code=500, detail="Could not save book")
    return _book_from_row(row)


@router.patch("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_book(
    book_id: str,
    payload: BookUpdate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(book_service.update_book, supa, str(user.id), book_id, _columns(payload))
    if not ok:
        raise HTTPException(status_code=404, detail="Book not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> Response:
    ok = await run_in_threadpool(book_service.delete_book, supa, str(user.id), book_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Book not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
