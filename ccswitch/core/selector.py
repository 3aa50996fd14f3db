"""
Channel selection: first reachable channel in priority order
"""
import logging
from typing import List

from ccswitch.core.exceptions import AllChannelsFailedError, NoAvailableChannelsError
from ccswitch.core.probe import HealthProbe
from ccswitch.core.registry import ChannelRegistry
from ccswitch.models.config import ChannelConfig

logger = logging.getLogger("ccswitch.selector")


def order_by_priority(channels: List[ChannelConfig]) -> List[ChannelConfig]:
    """
    Sort ascending by priority.

    ``sorted`` is stable, so equal priorities keep registration order.
    """
    return sorted(channels, key=lambda ch: ch.priority)


class ChannelSelector:
    """
    One pass over the candidates, probing sequentially.

    The first channel whose probe reports available wins; channels after it
    are never contacted.
    """

    def __init__(self, registry: ChannelRegistry, probe: HealthProbe):
        self.registry = registry
        self.probe = probe

    async def select(self, model: str) -> ChannelConfig:
        candidates = self.registry.get_channels_for_model(model)
        if not candidates:
            raise NoAvailableChannelsError(model)

        statuses = []
        for channel in order_by_priority(candidates):
            status = await self.probe.probe(channel)
            if status.available:
                logger.info(f"Selected channel {channel.name} for model {model}")
                return channel
            statuses.append(status)

        logger.error(f"All {len(statuses)} channel(s) for model {model} failed")
        raise AllChannelsFailedError(statuses)
