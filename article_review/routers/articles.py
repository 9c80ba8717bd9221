from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from article_review.cache import CacheBackend
from article_review.database import get_db
from article_review.dependencies import ListParams, get_cache
from article_review.routers.common import unwrap
from article_review.schemas import ArticleCreate, ArticleUpdate, ArticleResponse, DeleteResponse
from article_review.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

@router.get("", response_model=list[ArticleResponse])
async def list_articles(
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    return params.apply(unwrap(await article_service.get_articles(db, cache)))

@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    return unwrap(await article_service.get_article(db, cache, article_id))

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    article = unwrap(await article_service.create_article(db, cache, data))
    response.headers["Location"] = str(request.url_for("get_article", article_id=article.id))
    return article

@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: str,
    data: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    return unwrap(await article_service.update_article(db, cache, article_id, data))

@router.delete("/{article_id}", response_model=DeleteResponse)
async def delete_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    message = unwrap(await article_service.delete_article(db, cache, article_id))
    return DeleteResponse(message=message)
