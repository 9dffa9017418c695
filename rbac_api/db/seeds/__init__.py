from .rbac_seeder import seed_rbac

__all__ = ["seed_rbac"]
