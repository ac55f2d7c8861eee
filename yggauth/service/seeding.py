from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from yggauth.logging import get_logger
from yggauth.storage.memory import MemoryTokenAuthority
from yggauth.storage.models import ProfileRecord

logger = get_logger(__name__)


@dataclass(frozen=True)
class AccountSpec:
    username: str
    password: str
    profile_name: Optional[str] = None


@dataclass(frozen=True)
class SeededAccount:
    username: str
    user_id: str
    profile: Optional[ProfileRecord]


def parse_account_spec(raw: str) -> AccountSpec:
    """Parse ``USERNAME:PASSWORD[:PROFILE]``.

    The password may not contain ``:``; a trailing empty profile is treated
    as no profile, which leaves the account unable to authenticate.
    """
    parts = raw.split(":")
    if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
        raise ValueError(f"account must look like USERNAME:PASSWORD[:PROFILE], got {raw!r}")
    profile = parts[2] if len(parts) == 3 and parts[2] else None
    return AccountSpec(username=parts[0], password=parts[1], profile_name=profile)


def seed_accounts(
    authority: MemoryTokenAuthority, specs: Iterable[AccountSpec]
) -> List[SeededAccount]:
    seeded = []
    for spec in specs:
        user_id = authority.register_user(spec.username, spec.password)
        profile = None
        if spec.profile_name:
            profile = authority.register_profile(user_id, spec.profile_name)
        seeded.append(SeededAccount(username=spec.username, user_id=user_id, profile=profile))
    logger.info("accounts_seeded", count=len(seeded))
    return seeded


__all__ = ["AccountSpec", "SeededAccount", "parse_account_spec", "seed_accounts"]
