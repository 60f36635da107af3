from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str


class ArticleContentResponse(BaseModel):
    content: str
    textContent: str
    length: int
    title: Optional[str] = None
    excerpt: Optional[str] = None


class UrlMetadataResponse(BaseModel):
    title: str = ""
    description: str = ""
    image: str = ""


class FeedEpisodeResponse(BaseModel):
    guid: str
    title: str
    description: str
    audioUrl: str
    publishedDate: str
    duration: int = 0
    imageUrl: Optional[str] = None


class PodcastFeedResponse(BaseModel):
    title: str
    author: str
    description: str
    artworkUrl: str
    websiteUrl: str
    episodes: list[FeedEpisodeResponse] = Field(default_factory=list)


class PodcastSearchResult(BaseModel):
    collectionId: Optional[int] = None
    collectionName: Optional[str] = None
    artistName: Optional[str] = None
    artworkUrl100: Optional[str] = None
    artworkUrl600: Optional[str] = None
    feedUrl: str
    genres: list[str] = Field(default_factory=list)
    releaseDate: Optional[str] = None
    trackCount: Optional[int] = None


class PodcastSearchResponse(BaseModel):
    podcasts: list[PodcastSearchResult] = Field(default_factory=list)
