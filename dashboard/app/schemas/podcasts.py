from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class FeedResponse(BaseModel):
    id: str
    feedUrl: str
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    artworkUrl: Optional[str] = None
    websiteUrl: Optional[str] = None
    lastUpdated: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class EpisodeResponse(BaseModel):
    id: str
    feedId: str
    guid: str
    title: str
    description: Optional[str] = None
    audioUrl: str = ""
    publishedDate: Optional[str] = None
    duration: int = 0
    imageUrl: Optional[str] = None
    isPlayed: bool = False
    isFavorite: bool = False
    isArchived: bool = False
    isInQueue: bool = False
    playPosition: int = 0
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class SubscribeRequest(BaseModel):
    feedUrl: str = Field(..., min_length=1)


class RefreshResponse(BaseModel):
    feed: FeedResponse
    newEpisodes: int = 0


class EpisodeCountResponse(BaseModel):
    feedId: str
    count: int


class EpisodeStatusUpdate(BaseModel):
    isPlayed: Optional[bool] = None
    isFavorite: Optional[bool] = None
    isArchived: Optional[bool] = None
    isInQueue: Optional[bool] = None
    playPosition: Optional[float] = Field(default=None, ge=0)
