"""In-memory registry of per-guild queue state."""

from __future__ import annotations

import itertools
import logging

from ...domain.music.entities import GuildQueueState
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake

logger = logging.getLogger(__name__)


class GuildStateRegistry:
    """Creates guild state lazily and hands out a fresh generation each time.

    A driver holding a state object that is no longer registered (or was
    replaced after a leave/rejoin) treats itself as stale.
    """

    def __init__(self) -> None:
        self._states: dict[DiscordSnowflake, GuildQueueState] = {}
        self._generations = itertools.count(1)

    def get(self, guild_id: DiscordSnowflake) -> GuildQueueState | None:
        return self._states.get(guild_id)

    def get_or_create(self, guild_id: DiscordSnowflake) -> GuildQueueState:
        state = self._states.get(guild_id)
        if state is None:
            state = GuildQueueState(guild_id=guild_id, generation=next(self._generations))
            self._states[guild_id] = state
            logger.debug(LogTemplates.GUILD_STATE_CREATED, guild_id, state.generation)
        return state

    def discard(self, guild_id: DiscordSnowflake) -> GuildQueueState | None:
        state = self._states.pop(guild_id, None)
        if state is not None:
            logger.debug(LogTemplates.GUILD_STATE_DISCARDED, guild_id)
        return state

    def is_current(self, state: GuildQueueState) -> bool:
        registered = self._states.get(state.guild_id)
        return registered is state and registered.generation == state.generation

    def guild_ids(self) -> list[DiscordSnowflake]:
        return list(self._states)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._states

    def __len__(self) -> int:
        return len(self._states)
