"""
Identity component - resolve the acting user from a session.
"""

from ._impl import UserResolver
from .component import run_resolve
from .models import ResolveUserInput, ResolveUserOutput
from .ports import UserLookupPort, UserResolverPort

__all__ = [
    "run_resolve",
    "ResolveUserInput",
    "ResolveUserOutput",
    "UserLookupPort",
    "UserResolverPort",
    "UserResolver",
]
