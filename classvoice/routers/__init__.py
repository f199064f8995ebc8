from .course import router as course_router
from .cron import router as cron_router
from .lecture import admin_router as lecture_admin_router
from .lecture import router as lecture_router
from .like import router as like_router
from .post import admin_router as post_admin_router
from .post import router as post_router

routes = [
    course_router,
    lecture_admin_router,
    lecture_router,
    post_admin_router,
    post_router,
    like_router,
    cron_router,
]
