from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db
from blog_api.schemas import AuthRequest, AuthResponse, UserRegister
from blog_api.services import auth_service

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    return await auth_service.register(db, data)


@router.post("/login", response_model=AuthResponse)
async def login(data: AuthRequest, db: AsyncSession = Depends(get_db)):
    return await auth_service.login(db, data)
