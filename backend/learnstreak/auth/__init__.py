"""Authentication and authorization module exports."""

from learnstreak.auth.context import AuthContext, CurrentAuth
from learnstreak.auth.policy import AllowAllPolicy, Policy, PolicyChecker


__all__ = [
    "AllowAllPolicy",
    "AuthContext",
    "CurrentAuth",
    "Policy",
    "PolicyChecker",
]
