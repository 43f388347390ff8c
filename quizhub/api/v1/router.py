from fastapi import APIRouter

from quizhub.api.v1.endpoints import attempts, contests, health, leaderboard, users

api_router = APIRouter()
api_router.include_router(users.router)
api_router.include_router(contests.router)
api_router.include_router(attempts.router)
api_router.include_router(leaderboard.router)
api_router.include_router(health.router)
