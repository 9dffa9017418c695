"""Seed the permission catalog and the default roles into the database."""

import asyncio
import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rbac_api.api.v1.models import Permission, Role
from rbac_api.api.v1.shared.rbac_types import (
    DEFAULT_ROLE_PERMISSIONS,
    PERMISSION_CATALOG,
    ROLE_CATALOG,
)

logger = logging.getLogger(__name__)


async def seed_permissions(db: AsyncSession) -> int:
    """Insert catalog permissions that are missing. Existing rows are left alone."""
    result = await db.execute(select(Permission.name))
    existing = set(result.scalars().all())

    created = 0
    for entry in PERMISSION_CATALOG:
        name = entry["name"].value
        if name in existing:
            logger.debug(f"Permission already exists: {name}")
            continue
        db.add(Permission(
            name=name,
            resource=entry["resource"].value,
            action=entry["action"].value,
            description=entry["description"],
            is_active=True,
        ))
        created += 1
        logger.info(f"Created permission: {name}")
    return created


async def seed_roles(db: AsyncSession) -> Dict[str, int]:
    """Insert missing roles and reset existing ones to the default matrix."""
    result = await db.execute(select(Role))
    existing = {role.name: role for role in result.scalars().all()}

    counts = {"created": 0, "updated": 0}
    for role_name, description in ROLE_CATALOG.items():
        permissions = sorted(p.value for p in DEFAULT_ROLE_PERMISSIONS[role_name])
        role = existing.get(role_name.value)
        if role is None:
            db.add(Role(
                name=role_name.value,
                description=description,
                permissions=permissions,
                is_active=True,
            ))
            counts["created"] += 1
            logger.info(f"Created role: {role_name}")
        else:
            role.permissions = permissions
            counts["updated"] += 1
            logger.info(f"Updated role: {role_name}")
    return counts


async def seed_rbac(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Idempotent: running it twice leaves the same state as running it once."""
    logger.info("Starting RBAC database seeding")
    async with session_factory() as db:
        try:
            permissions_created = await seed_permissions(db)
            await db.flush()
            role_counts = await seed_roles(db)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error("Error seeding RBAC data", exc_info=True)
            raise
    logger.info(
        f"RBAC seeding completed: {permissions_created} permission(s) created, "
        f"{role_counts['created']} role(s) created, {role_counts['updated']} role(s) updated"
    )


async def _main():
    from rbac_api.core.config import get_settings
    from rbac_api.db import DatabaseManager

    settings = get_settings()
    db_manager = DatabaseManager(settings.ASYNC_DATABASE_URL, echo=settings.DB_ECHO)
    try:
        await db_manager.create_all()
        await seed_rbac(db_manager.async_session_factory)
    finally:
        await db_manager.dispose()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(_main())
