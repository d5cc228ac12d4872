"""
Campus Crush — Main API Router

Aggregates all HTTP sub-routers so that ``app.main`` can mount the entire API
surface with one ``include_router`` call.  The chat WebSocket is mounted
separately, outside the ``/api`` prefix.
"""

from fastapi import APIRouter

from app.api import accounts, connections, discovery, messages, profiles, reports

router = APIRouter()

router.include_router(accounts.router, tags=["Accounts"])
router.include_router(profiles.router, tags=["Profiles"])
router.include_router(discovery.router, tags=["Discovery"])
router.include_router(connections.router, tags=["Connections"])
router.include_router(messages.router, tags=["Messages"])
router.include_router(reports.router, tags=["Reports"])
