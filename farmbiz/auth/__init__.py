"""인증 주체 해석 모듈"""
from .identity import IdentityResolver, require_role

__all__ = ["IdentityResolver", "require_role"]
