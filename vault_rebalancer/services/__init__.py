"""Service modules"""
from .keeper import Keeper, build_notifier, create_keeper
from .version_check import VersionChecker

__all__ = ["Keeper", "VersionChecker", "build_notifier", "create_keeper"]
