"""Ready-made scenarios."""

from .small_talk import SmallTalkWorld, create_world

__all__ = ["SmallTalkWorld", "create_world"]
