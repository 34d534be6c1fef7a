from .package_expiration import expire_stale_packages

__all__ = ["expire_stale_packages"]
