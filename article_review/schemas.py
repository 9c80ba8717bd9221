from pydantic import BaseModel, ConfigDict, Field


# Identifiers are plain strings here; their shape is checked by
# ``article_review.validation`` so a malformed id maps to 400, not 422.


# --- Article ---

class ArticleBase(BaseModel):
    title: str = Field(max_length=300)
    body: str = ""


class ArticleCreate(ArticleBase):
    id: str = ""  # empty: the store assigns one


class ArticleUpdate(ArticleBase):
    pass


class ArticleResponse(ArticleBase):
    id: str
    model_config = ConfigDict(from_attributes=True)


# --- Review ---

class ReviewBase(BaseModel):
    article_id: str
    reviewer: str = Field(max_length=150)
    content: str


class ReviewCreate(ReviewBase):
    id: str = ""


class ReviewUpdate(ReviewBase):
    pass


class ReviewResponse(ReviewBase):
    id: str
    model_config = ConfigDict(from_attributes=True)


# --- Delete ---

class DeleteResponse(BaseModel):
    message: str


# --- Metrics ---

class MetricsResponse(BaseModel):
    resource: str
    total_records: int
    cache_info: dict = {}
