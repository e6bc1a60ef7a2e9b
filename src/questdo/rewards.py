"""Reward formulas.

Pure functions over task snapshots and player status. Nothing here holds
state, so every value can be recomputed at any time from its inputs.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum

from questdo.models import (
    TAG_LEARNING,
    TAG_MENTAL_CARE,
    TAG_RECOVERY,
    Kind,
    PlayerStatus,
    Priority,
    Size,
    Task,
)

DUE_DATE_BONUS = 5
PRIORITY_POINTS = 3
CHILD_POINTS = 5
TAG_POINTS = 2

FAST_HOURS = 24
QUICK_HOURS = 72
FAST_MULTIPLIER = 1.3
QUICK_MULTIPLIER = 1.1

PROJECT_BONUS_RATE = 0.2
SPEED_BONUS_RATE = 0.3

XP_PER_LEVEL = 100
SKILL_EXP_STEP = 50

# Focus sessions (pomodoro) restore or drain MP
FOCUS_COMPLETED_MP = 10
FOCUS_ABANDONED_MP = -5


class PenaltyReason(Enum):
    """Why a task is being penalized."""

    OVERDUE = "overdue"
    ABANDONED = "abandoned"


def staked_points(task: Task) -> int:
    """Provisional reward for a task given its configured attributes."""
    points = task.size.base_points
    if task.due_date is not None:
        points += DUE_DATE_BONUS
    if task.priority:
        points += PRIORITY_POINTS * int(task.priority)
    points += CHILD_POINTS * len(task.child_ids)
    points += TAG_POINTS * len(task.tags)
    return points


def hours_elapsed(task: Task) -> float | None:
    """Hours between creation and completion, or None if not completed."""
    if task.completed_at is None:
        return None
    return (task.completed_at - task.created_at).total_seconds() / 3600


def mp_multiplier(status: PlayerStatus) -> float:
    """0.5 at empty MP up to 1.5 at full MP."""
    if status.max_mp <= 0:
        return 0.5
    return 0.5 + status.current_mp / status.max_mp


def speed_multiplier(task: Task) -> float:
    hours = hours_elapsed(task)
    if hours is None:
        return 1.0
    if hours <= FAST_HOURS:
        return FAST_MULTIPLIER
    if hours <= QUICK_HOURS:
        return QUICK_MULTIPLIER
    return 1.0


def confirmed_reward(task: Task, status: PlayerStatus) -> int:
    """Final XP granted at completion."""
    # Order of multiplication matters for float rounding
    value = task.staked_points * mp_multiplier(status)
    value = value * speed_multiplier(task)
    value = value * (task.priority.multiplier if task.priority else 1.0)
    return math.floor(value)


def decomposition_bonus(original_size: Size, subtask_count: int) -> int:
    """Reward for splitting large work into subtasks."""
    if original_size == Size.LARGE and subtask_count >= 3:
        return 30 + 5 * subtask_count
    if original_size == Size.MEDIUM and subtask_count >= 2:
        return 15 + 3 * subtask_count
    return 0


def _tag_recovery(task: Task, tag: str) -> int:
    if not task.has_tag(tag):
        return 0
    return task.size.base_points // 2


def hp_recovery(task: Task) -> int:
    return _tag_recovery(task, TAG_RECOVERY)


def mp_recovery(task: Task) -> int:
    return _tag_recovery(task, TAG_MENTAL_CARE)


def should_gain_int_experience(task: Task) -> bool:
    return task.has_tag(TAG_LEARNING) or task.kind == Kind.PROJECT


def should_gain_speed_experience(task: Task) -> bool:
    hours = hours_elapsed(task)
    return hours is not None and hours <= FAST_HOURS


def project_completion_bonus(child_rewards_sum: int) -> int:
    return math.floor(PROJECT_BONUS_RATE * child_rewards_sum)


def within_expected_duration(project: Task) -> bool:
    """True if the project was completed inside its size-based expected duration."""
    if project.completed_at is None:
        return False
    days = (project.completed_at - project.created_at).total_seconds() / 86400
    return days <= project.size.expected_days


def speed_bonus_share(child_rewards_sum: int) -> int:
    return math.floor(SPEED_BONUS_RATE * child_rewards_sum)


def speed_bonus(child_rewards_sum: int, project: Task) -> int:
    """Bonus for finishing a project inside its size-based expected duration."""
    if not within_expected_duration(project):
        return 0
    return speed_bonus_share(child_rewards_sum)


def speed_bonus_window(project: Task, now: datetime) -> tuple[bool, int]:
    """(eligible, whole days left) for a project still in progress."""
    days = (now - project.created_at).total_seconds() / 86400
    remaining = project.size.expected_days - days
    if remaining < 0:
        return False, 0
    return True, math.ceil(remaining)


def penalty(task: Task, reason: PenaltyReason) -> tuple[int, int]:
    """(hp, mp) to subtract for an overdue or abandoned task."""
    if reason == PenaltyReason.OVERDUE:
        if task.priority == Priority.HIGH:
            return 15, 10
        return 5, 5
    return 0, 8


def level_for_xp(xp_total: int) -> int:
    return xp_total // XP_PER_LEVEL + 1


def next_level_xp(xp_total: int) -> int:
    """Total XP at which the next level is reached."""
    return level_for_xp(xp_total) * XP_PER_LEVEL


def exp_for_level(level: int) -> int:
    """Skill experience needed to go from ``level`` to ``level + 1``."""
    return SKILL_EXP_STEP * level
