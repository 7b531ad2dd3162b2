"""
BillSense AI Backend — Application Context and FastAPI Dependencies
===================================================================

What:  The AppContext bundles everything a request may need (settings,
       database, AI service). create_app() builds one and stores it on
       `app.state.context`.
Why:   Handlers receive shared resources through FastAPI's dependency
       injection instead of importing module-level singletons, so each app
       instance (production, or one per test) is fully isolated.
How:   Small dependency functions read `request.app.state.context`.
"""

from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.config import Settings
from billsense.database import Database
from billsense.services.ai_service import AIService
from billsense.services.llm_base import LLMService


@dataclass
class AppContext:
    """Resources shared by every request of one application instance."""
    settings: Settings
    database: Database
    llm: LLMService
    ai: AIService


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings(context: AppContext = Depends(get_context)) -> Settings:
    return context.settings


async def get_db_session(
    context: AppContext = Depends(get_context),
) -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request, shared by the auth gate and the handler.

    FastAPI caches dependency results per request, so both receive the same
    session and the user loaded by the gate is attached to it.
    """
    async with context.database.session() as session:
        yield session


def get_ai_service(context: AppContext = Depends(get_context)) -> AIService:
    return context.ai
