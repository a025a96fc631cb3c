from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....infrastructure.db import get_db
from ....infrastructure.queries import get_published_courses
from ..schemas import CourseOut, HomePage

router = APIRouter(tags=["home"])

FEATURED_LIMIT = 3


@router.get("/", response_model=HomePage)
def home(db: Session = Depends(get_db)):
    courses = get_published_courses(db)
    return HomePage(
        title="Edumynt",
        tagline="Learn English, Psychology and Mathematics at your own pace",
        featured_courses=[CourseOut.model_validate(c) for c in courses[:FEATURED_LIMIT]],
        links={"courses": "/courses", "signin": "/auth/signin", "signup": "/auth/signup"},
    )
