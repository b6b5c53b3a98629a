"""Lua scripts executed atomically by the key store.

Each script checks that the stored value still equals the caller's owner token
before acting, so a lock that expired and was taken by someone else is never
touched.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field


@dataclass(frozen=True)
class LuaScript:
    """Script source with its precomputed SHA1 digest for EVALSHA."""

    name: str
    source: str
    sha: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sha", hashlib.sha1(self.source.encode("utf-8")).hexdigest())


# KEYS[1] - lock key, ARGV[1] - owner token
# returns: 1 if deleted, otherwise 0
RELEASE_SCRIPT = LuaScript(
    name="release",
    source="""
if redis.call("GET", KEYS[1]) == ARGV[1]
then
    return redis.call("DEL", KEYS[1])
else
    return 0
end
""",
)

# KEYS[1] - lock key, ARGV[1] - owner token, ARGV[2] - ttl in milliseconds
# Sets a fresh absolute deadline rather than adding to the remaining time.
# returns: 1 if the expiry was reset, otherwise 0
EXTEND_SCRIPT = LuaScript(
    name="extend",
    source="""
if redis.call("GET", KEYS[1]) == ARGV[1]
then
    return redis.call("PEXPIRE", KEYS[1], tonumber(ARGV[2]))
else
    return 0
end
""",
)
