from typing import Annotated

from fastapi import APIRouter, Depends, status

from pgbridge.core.database import get_db
from pgbridge.core.executor import DB

router = APIRouter(tags=["Health"])

# Modern Dependency Injection
db_dep = Annotated[DB, Depends(get_db)]


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(db: db_dep):
    """Round trip to the database on the request's own connection."""
    value = await db.func("!SELECT 1")
    return {"status": "ok", "database": value == 1}
