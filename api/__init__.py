from fastapi import APIRouter

from schemas.dto.responses.common import ERROR_RESPONSES

api_router = APIRouter(prefix="/api", responses=ERROR_RESPONSES)


# Import endpoint modules and mount their routers on api_router
from . import auth  # noqa: E402
from . import users  # noqa: E402
from . import recipes  # noqa: E402
from . import blogs  # noqa: E402

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(recipes.router)
api_router.include_router(blogs.router)
