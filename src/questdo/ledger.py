"""Progression ledger - HP/MP, XP level and skill levels."""

from __future__ import annotations

import logging
from dataclasses import replace

from questdo.errors import ValidationFailed
from questdo.models import PlayerStatus
from questdo.rewards import exp_for_level, level_for_xp, next_level_xp
from questdo.state import StatusState

logger = logging.getLogger("questdo.ledger")

LEVEL_UP_HP = 10
LEVEL_UP_MP = 10


def _clamp(value: int, upper: int) -> int:
    return max(0, min(upper, value))


def _check_credit(amount: int, what: str) -> None:
    if amount < 0:
        raise ValidationFailed(f"{what} credit must not be negative: {amount}")


class ProgressionLedger:
    """Owns player status and the rules for changing it."""

    def __init__(self, state: StatusState):
        self._state = state

    @property
    def status(self) -> PlayerStatus:
        return self._state.current

    def _set(self, status: PlayerStatus) -> PlayerStatus:
        self._state.current = status
        return status

    def adjust_hp(self, delta: int) -> PlayerStatus:
        s = self.status
        return self._set(replace(s, current_hp=_clamp(s.current_hp + delta, s.max_hp)))

    def adjust_mp(self, delta: int) -> PlayerStatus:
        s = self.status
        return self._set(replace(s, current_mp=_clamp(s.current_mp + delta, s.max_mp)))

    def credit_xp(self, amount: int) -> int:
        """Add XP and re-derive the level. Returns number of levels gained."""
        _check_credit(amount, "XP")
        s = self.status
        xp_total = s.xp_total + amount
        level = level_for_xp(xp_total)
        gained = level - s.level
        if gained > 0:
            max_hp = s.max_hp + LEVEL_UP_HP
            max_mp = s.max_mp + LEVEL_UP_MP
            self._set(
                replace(
                    s,
                    xp_total=xp_total,
                    level=level,
                    max_hp=max_hp,
                    max_mp=max_mp,
                    current_hp=min(s.current_hp + LEVEL_UP_HP, max_hp),
                    current_mp=min(s.current_mp + LEVEL_UP_MP, max_mp),
                )
            )
            logger.info("Level up: %d -> %d (%d XP)", s.level, level, xp_total)
            return gained
        self._set(replace(s, xp_total=xp_total, level=level))
        return 0

    def credit_int_exp(self, amount: int) -> bool:
        """Add INT experience. Returns True if the INT level went up."""
        _check_credit(amount, "INT experience")
        s = self.status
        exp = s.int_exp + amount
        needed = exp_for_level(s.level_int)
        if exp >= needed:
            # At most one level per call, the rest carries over
            self._set(replace(s, int_exp=exp - needed, level_int=s.level_int + 1))
            logger.info("INT level up: %d -> %d", s.level_int, s.level_int + 1)
            return True
        self._set(replace(s, int_exp=exp))
        return False

    def credit_speed_exp(self, amount: int) -> bool:
        """Add Speed experience. Returns True if the Speed level went up."""
        _check_credit(amount, "Speed experience")
        s = self.status
        exp = s.speed_exp + amount
        needed = exp_for_level(s.level_speed)
        if exp >= needed:
            self._set(replace(s, speed_exp=exp - needed, level_speed=s.level_speed + 1))
            logger.info("Speed level up: %d -> %d", s.level_speed, s.level_speed + 1)
            return True
        self._set(replace(s, speed_exp=exp))
        return False

    def level_up_int(self) -> PlayerStatus:
        """Raise INT level by one, discarding accumulated experience."""
        s = self.status
        return self._set(replace(s, level_int=s.level_int + 1, int_exp=0))

    def level_up_speed(self) -> PlayerStatus:
        s = self.status
        return self._set(replace(s, level_speed=s.level_speed + 1, speed_exp=0))

    def reset(self) -> PlayerStatus:
        logger.info("Player status reset to defaults")
        return self._set(PlayerStatus())

    def next_level_xp(self) -> int:
        return next_level_xp(self.status.xp_total)

    def int_exp_progress(self) -> tuple[int, int]:
        """(current, needed) INT experience."""
        s = self.status
        return s.int_exp, exp_for_level(s.level_int)

    def speed_exp_progress(self) -> tuple[int, int]:
        s = self.status
        return s.speed_exp, exp_for_level(s.level_speed)
