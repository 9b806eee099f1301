from fastapi import APIRouter

from app.schemas.common import Result

router = APIRouter()


@router.get("")
def hello() -> Result[str]:
    return Result.success("hello world")
