"""
Package resolution for script package dependencies.
"""

from .resolver import LocalPackageResolver, default_package_roots, framework_key, version_key

__all__ = ["LocalPackageResolver", "default_package_roots", "framework_key", "version_key"]
