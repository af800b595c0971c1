from __future__ import annotations

from fastapi import APIRouter

from . import health, wechat_pay

__all__ = ["ROUTERS"]

ROUTERS: tuple[APIRouter, ...] = (health.router, wechat_pay.router)
