from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from article_review.cache import CacheBackend
from article_review.database import get_db
from article_review.dependencies import ListParams, get_article_checker, get_cache
from article_review.routers.common import unwrap
from article_review.schemas import DeleteResponse, ReviewCreate, ReviewResponse, ReviewUpdate
from article_review.services import review_service
from article_review.services.article_reference import ArticleExistenceChecker

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])

@router.get("", response_model=list[ReviewResponse])
async def list_reviews(
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    return params.apply(unwrap(await review_service.get_reviews(db, cache)))

@router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(
    review_id: str,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    return unwrap(await review_service.get_review(db, cache, review_id))

@router.post("", status_code=201, response_model=ReviewResponse)
async def create_review(
    data: ReviewCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    articles: ArticleExistenceChecker = Depends(get_article_checker),
):
    review = unwrap(await review_service.create_review(db, cache, articles, data))
    response.headers["Location"] = str(request.url_for("get_review", review_id=review.id))
    return review

@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
    articles: ArticleExistenceChecker = Depends(get_article_checker),
):
    return unwrap(await review_service.update_review(db, cache, articles, review_id, data))

@router.delete("/{review_id}", response_model=DeleteResponse)
async def delete_review(
    review_id: str,
    db: AsyncSession = Depends(get_db),
    cache: CacheBackend = Depends(get_cache),
):
    message = unwrap(await review_service.delete_review(db, cache, review_id))
    return DeleteResponse(message=message)
