# dashboard/app/schemas/library.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

BookStatusValue = Literal["Backlog", "Reading", "Finished", "Abandoned"]


class ArticleResponse(BaseModel):
    id: str
    url: str
    domain: str = ""
    title: str
    body: Optional[str] = None
    image: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    isFavorite: bool = False
    isArchive: bool = False
    readingTimeMinutes: Optional[int] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class LinkResponse(BaseModel):
    id: str
    url: str
    domain: str = ""
    title: str
    image: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    isFavorite: bool = False
    isArchive: bool = False
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class SavedUrlCreate(BaseModel):
    url: str = Field(..., min_length=1)
    title: Optional[str] = None
    image: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    isFavorite: bool = False
    isArchive: bool = False


class SavedUrlUpdate(BaseModel):
    url: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[list[str]] = None
    isFavorite: Optional[bool] = None
    isArchive: Optional[bool] = None


class NoteResponse(BaseModel):
    id: str
    content: str
    tags: list[str] = Field(default_factory=list)
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class NoteCreate(BaseModel):
    content: str = Field(..., min_length=1)
    tags: list[str] = Field(default_factory=list)


class NoteUpdate(BaseModel):
    content: Optional[str] = None
    tags: Optional[list[str]] = None


class BookResponse(BaseModel):
    id: str
    bookTitle: str
    author: str
    bookCoverUrl: Optional[str] = None
    status: BookStatusValue
    rating: Optional[int] = None
    startedReadingDate: Optional[str] = None
    finishedReadingDate: Optional[str] = None
    createdAt: Optional[str] = None


class BookCreate(BaseModel):
    bookTitle: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    bookCoverUrl: Optional[str] = None
    status: BookStatusValue = "Backlog"
    rating: Optional[int] = Field(default=None, ge=0, le=5)


class BookUpdate(BaseModel):
    bookTitle: Optional[str] = Field(default=None, min_length=1)
    author: Optional[str] = Field(default=None, min_length=1)
    bookCoverUrl: Optional[str] = None
    status: Optional[BookStatusValue] = None
    rating: Optional[int] = Field(default=None, ge=0, le=5)


class BookSearchResult(BaseModel):
    bookTitle: str
    author: str
    bookCoverUrl: str = ""


class TagsResponse(BaseModel):
    tags: list[str] = Field(default_factory=list)
