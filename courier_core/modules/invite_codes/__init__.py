# courier_core/modules/invite_codes/__init__.py
"""
Invite codes module - driver invite code registry

- Admins issue and deactivate one-time codes
- A code is valid while active and unused
- Consumption is a compare-and-swap on used_at, committed together with
  the promotion of the user to driver

Architecture:
- router.py: public validation and consumption endpoints
- service.py: registry operations
- repository.py: data access
- schemas.py: request/response models
"""

from .service import InviteCodeService, normalize_code
from .repository import InviteCodeRepository

__all__ = [
    "InviteCodeService",
    "InviteCodeRepository",
    "normalize_code"
]
