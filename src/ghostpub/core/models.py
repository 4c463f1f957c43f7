"""Data models for note metadata and remote Ghost posts"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PostAccess(str, Enum):
    """Ghost post visibility"""
    public = "public"
    members = "members"
    paid = "paid"


class PostStatus(str, Enum):
    """Ghost post lifecycle status"""
    draft = "draft"
    published = "published"
    scheduled = "scheduled"


class GhostMetadata(BaseModel):
    """Publishing metadata read from a note's header under the configured prefix."""
    post_access:   PostAccess = PostAccess.paid
    published:     bool = False
    published_at:  Optional[str] = None     # raw string; interpreted by core.publish
    featured:      bool = False
    tags:          list[str] = Field(default_factory=list)
    excerpt:       str = ""
    feature_image: str = ""
    no_sync:       bool = False
    remote_id:     Optional[str] = None     # Ghost post id once synced
    slug:          Optional[str] = None


class Tag(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str


class RemoteArticle(BaseModel):
    """A Ghost post as returned by the Admin API. Unknown fields are ignored."""
    model_config = ConfigDict(extra="ignore")

    id:            str
    uuid:          Optional[str] = None
    title:         str = ""
    slug:          str = ""
    html:          Optional[str] = None
    lexical:       Optional[str] = None
    status:        PostStatus = PostStatus.draft
    visibility:    str = PostAccess.public.value     # Ghost may also report "tiers"
    featured:      bool = False
    feature_image: Optional[str] = None
    excerpt:       Optional[str] = None
    tags:          list[Tag] = Field(default_factory=list)
    published_at:  Optional[str] = None
    updated_at:    Optional[str] = None
    created_at:    Optional[str] = None
