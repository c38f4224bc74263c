from __future__ import annotations

import hmac
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

FIELDS_WRITE: str = "fields:write"
KNOWN_CAPABILITIES: FrozenSet[str] = frozenset({FIELDS_WRITE})


@dataclass(frozen=True, slots=True)
class Actor:
    """Caller of the API. Anyone authenticated may sanitise; editing the
    live allow-list needs fields:write."""

    actor_id: str
    capabilities: FrozenSet[str] = frozenset()

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


ANONYMOUS = Actor(actor_id="anonymous", capabilities=KNOWN_CAPABILITIES)


def parse_api_keys(raw: str) -> Dict[str, Actor]:
    """Parse TWEETSAN_API_KEYS.

    Entries are separated by ";" and read "<key>:<actor>:<caps>", where caps
    is a comma list that may itself contain ":" (e.g. "fields:write").

      TWEETSAN_API_KEYS="k1:alice:fields:write;k2:bob:"

    Entries without a key or actor are ignored, as are capabilities
    tweetsan does not know.
    """

    out: Dict[str, Actor] = {}
    for entry in (raw or "").split(";"):
        key, _, rest = entry.strip().partition(":")
        actor_id, _, caps_raw = rest.partition(":")
        key, actor_id = key.strip(), actor_id.strip()
        if not key or not actor_id:
            continue
        caps = {c.strip() for c in caps_raw.split(",")} & KNOWN_CAPABILITIES
        out[key] = Actor(actor_id=actor_id, capabilities=frozenset(caps))
    return out


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """API keys and whether the service insists on them.

    With no keys and TWEETSAN_REQUIRE_AUTH unset the service runs open and
    every caller is the anonymous actor.
    """

    keys: Dict[str, Actor] = field(default_factory=dict)
    required: bool = False

    @classmethod
    def from_env(cls) -> "AuthConfig":
        keys = parse_api_keys(os.environ.get("TWEETSAN_API_KEYS", ""))
        flag = os.environ.get("TWEETSAN_REQUIRE_AUTH", "").strip().lower()
        forced = flag in {"1", "true", "yes"}
        return cls(keys=keys, required=forced or bool(keys))

    def authenticate(self, api_key: Optional[str]) -> Optional[Actor]:
        """Return the actor for api_key, or None. Open services return ANONYMOUS."""

        if not self.required:
            return ANONYMOUS
        if not api_key:
            return None
        found: Optional[Actor] = None
        # Compare against every key so timing does not reveal which one matched.
        for k, actor in self.keys.items():
            if hmac.compare_digest(k.encode("utf-8"), api_key.encode("utf-8")):
                found = actor
        return found
