from fastapi import APIRouter, Depends

from . import ai, analytics, articles, auth, feeds
from .deps import get_current_user

router = APIRouter()

# Public
router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Everything else needs a valid bearer token
protected = [Depends(get_current_user)]
router.include_router(articles.router, prefix="/articles", tags=["articles"], dependencies=protected)
router.include_router(feeds.router, prefix="/feeds", tags=["feeds"], dependencies=protected)
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"], dependencies=protected)
router.include_router(ai.router, prefix="/ai", tags=["ai"], dependencies=protected)
