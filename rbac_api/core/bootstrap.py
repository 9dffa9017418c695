import logging

from fastapi import FastAPI

from rbac_api.api.v1.routers import auth, permissions, roles, users
from rbac_api.core.container import ServiceContainer

logger = logging.getLogger(__name__)


def bootstrap_app(app: FastAPI, container: ServiceContainer):
    prefix = container.settings.API_PREFIX

    app.include_router(auth.create_router(container), prefix=prefix, tags=["Authentication"])
    app.include_router(users.create_router(container), prefix=prefix, tags=["Users"])
    app.include_router(roles.create_router(container), prefix=prefix, tags=["Roles"])
    app.include_router(permissions.create_router(container), prefix=prefix, tags=["Permissions"])
    logger.info(f"Routers mounted under '{prefix}'")
