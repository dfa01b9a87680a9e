"""
Progression Engine: points, achievements and badges.

Stats are recomputed from the record store on every evaluation, never cached, so
evaluate() is idempotent and an approved submission is counted exactly once no
matter how many times it runs. Achievements unlock before badges because badge
thresholds are measured in unlocked achievements.
"""

import logging
from collections import Counter
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from exceptions import NotFoundError, ValidationError
from models import SUBMISSIONS, USERS, User

logger = logging.getLogger(__name__)

LEVEL_POINTS_MULTIPLIER = 10

RequirementType = Literal['tasks_completed', 'task_type_completed', 'levels_completed',
                          'points_earned', 'achievements_earned']


class Requirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: RequirementType
    count: int
    taskType: Optional[str] = None


class AchievementDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    icon: str
    requirement: Requirement


class BadgeDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    icon: str
    color: str
    requirement: Requirement


ACHIEVEMENT_DEFINITIONS = (
    AchievementDefinition(id='first_task', title='First Steps',
                          description='Complete your first environmental task', icon='fas fa-seedling',
                          requirement=Requirement(type='tasks_completed', count=1)),
    AchievementDefinition(id='task_master', title='Task Master',
                          description='Complete 5 environmental tasks', icon='fas fa-check-double',
                          requirement=Requirement(type='tasks_completed', count=5)),
    AchievementDefinition(id='eco_warrior', title='Eco Warrior',
                          description='Complete 10 environmental tasks', icon='fas fa-shield-alt',
                          requirement=Requirement(type='tasks_completed', count=10)),
    AchievementDefinition(id='recycling_hero', title='Recycling Hero',
                          description='Complete 3 recycling tasks', icon='fas fa-recycle',
                          requirement=Requirement(type='task_type_completed', taskType='recycling', count=3)),
    AchievementDefinition(id='energy_saver', title='Energy Saver',
                          description='Complete 3 energy conservation tasks', icon='fas fa-bolt',
                          requirement=Requirement(type='task_type_completed', taskType='energy', count=3)),
    AchievementDefinition(id='water_guardian', title='Water Guardian',
                          description='Complete 3 water conservation tasks', icon='fas fa-tint',
                          requirement=Requirement(type='task_type_completed', taskType='water', count=3)),
    AchievementDefinition(id='level_master', title='Level Master',
                          description='Complete all game levels', icon='fas fa-gamepad',
                          requirement=Requirement(type='levels_completed', count=10)),
    AchievementDefinition(id='point_collector', title='Point Collector',
                          description='Earn 100 points', icon='fas fa-star',
                          requirement=Requirement(type='points_earned', count=100)),
)

BADGE_DEFINITIONS = (
    BadgeDefinition(id='bronze_eco', title='Bronze Eco Badge', icon='fas fa-medal', color='#cd7f32',
                    requirement=Requirement(type='achievements_earned', count=2)),
    BadgeDefinition(id='silver_eco', title='Silver Eco Badge', icon='fas fa-medal', color='#c0c0c0',
                    requirement=Requirement(type='achievements_earned', count=4)),
    BadgeDefinition(id='gold_eco', title='Gold Eco Badge', icon='fas fa-medal', color='#ffd700',
                    requirement=Requirement(type='achievements_earned', count=6)),
    BadgeDefinition(id='platinum_eco', title='Platinum Eco Badge', icon='fas fa-award', color='#e5e4e2',
                    requirement=Requirement(type='achievements_earned', count=8)),
)


class UserStats(BaseModel):
    approvedTasks: int = 0
    approvedByType: Dict[str, int] = {}
    completedLevels: int = 0
    points: int = 0

    def current_for(self, requirement: Requirement) -> int:
        if requirement.type == 'tasks_completed':
            return self.approvedTasks
        if requirement.type == 'task_type_completed':
            return self.approvedByType.get(requirement.taskType, 0)
        if requirement.type == 'levels_completed':
            return self.completedLevels
        if requirement.type == 'points_earned':
            return self.points
        return 0


class UnlockEvent(BaseModel):
    kind: Literal['achievement', 'badge']
    id: str
    title: str
    icon: str
    color: Optional[str] = None


class ProgressionResult(BaseModel):
    newAchievements: List[AchievementDefinition] = []
    newBadges: List[BadgeDefinition] = []

    @property
    def is_empty(self) -> bool:
        return not self.newAchievements and not self.newBadges

    def events(self) -> List[UnlockEvent]:
        """Unlocks as an ordered queue for presentation: achievements first, then badges."""
        events = [UnlockEvent(kind='achievement', id=a.id, title=a.title, icon=a.icon)
                  for a in self.newAchievements]
        events += [UnlockEvent(kind='badge', id=b.id, title=b.title, icon=b.icon, color=b.color)
                   for b in self.newBadges]
        return events


class ProgressionEngine:
    def __init__(self, store, achievements: Sequence[AchievementDefinition] = ACHIEVEMENT_DEFINITIONS,
                 badges: Sequence[BadgeDefinition] = BADGE_DEFINITIONS):
        self.store = store
        self.achievements = tuple(achievements)
        self.badges = tuple(badges)

    def _load_user(self, user_id: str) -> User:
        record = self.store.get(USERS, user_id)
        if record is None:
            raise NotFoundError(f"User '{user_id}' not found.", {"userId": user_id})
        return User(**record)

    def _save_user(self, user: User) -> User:
        return User(**self.store.put(USERS, user.to_record()))

    def compute_stats(self, user: User) -> UserStats:
        approved = self.store.query(
            SUBMISSIONS, lambda r: r.get('userId') == user.id and r.get('status') == 'approved')
        by_type = Counter(r.get('taskType') for r in approved)
        return UserStats(
            approvedTasks=len(approved),
            approvedByType=dict(by_type),
            completedLevels=len(user.completedLevels),
            points=user.points,
        )

    def evaluate(self, user_id: str) -> ProgressionResult:
        """Unlock every achievement, then every badge, whose requirement now holds. Writes only on change."""
        user = self._load_user(user_id)
        stats = self.compute_stats(user)

        new_achievements = [
            a for a in self.achievements
            if a.id not in user.achievements and stats.current_for(a.requirement) >= a.requirement.count
        ]
        if new_achievements:
            user.achievements = user.achievements + [a.id for a in new_achievements]
            user = self._save_user(user)
            logger.info(f"User {user_id} unlocked achievements: {[a.id for a in new_achievements]}")

        unlocked_count = len(user.achievements)
        new_badges = [
            b for b in self.badges
            if b.id not in user.badges and unlocked_count >= b.requirement.count
        ]
        if new_badges:
            user.badges = user.badges + [b.id for b in new_badges]
            self._save_user(user)
            logger.info(f"User {user_id} unlocked badges: {[b.id for b in new_badges]}")

        return ProgressionResult(newAchievements=new_achievements, newBadges=new_badges)

    def award_points(self, user_id: str, amount: int, reason: str = "",
                     award_key: Optional[str] = None) -> ProgressionResult:
        """Add points, then evaluate. An award_key already recorded on the user adds nothing."""
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError("Points awarded must be a positive integer.", {"amount": amount})

        user = self._load_user(user_id)
        if award_key is not None and award_key in user.pointAwards:
            logger.info(f"Points for {award_key} already credited to user {user_id}")
            return self.evaluate(user_id)

        user.points += amount
        if award_key is not None:
            user.pointAwards = user.pointAwards + [award_key]
        self._save_user(user)
        logger.info(f"Awarded {amount} points to user {user_id} for: {reason}")
        return self.evaluate(user_id)

    def complete_level(self, user_id: str, level_id: int, score: int) -> ProgressionResult:
        """First completion of a level adds it to the user's list and awards score x 10 points."""
        if not isinstance(level_id, int) or level_id < 1:
            raise ValidationError("Level id must be a positive integer.", {"levelId": level_id})
        if not isinstance(score, int) or score < 0:
            raise ValidationError("Score must be a non-negative integer.", {"score": score})

        user = self._load_user(user_id)
        if level_id in user.completedLevels:
            logger.info(f"User {user_id} replayed level {level_id}, no points awarded")
            return ProgressionResult()

        user.completedLevels = user.completedLevels + [level_id]
        user.points += score * LEVEL_POINTS_MULTIPLIER
        self._save_user(user)
        logger.info(f"User {user_id} completed level {level_id} with score {score}")
        return self.evaluate(user_id)

    def progress(self, user_id: str) -> dict:
        user = self._load_user(user_id)
        stats = self.compute_stats(user)

        achievements = []
        for a in self.achievements:
            current = stats.current_for(a.requirement)
            percent = min(100.0, current / a.requirement.count * 100) if a.requirement.count else 100.0
            achievements.append({
                **a.model_dump(),
                "current": current,
                "progress": round(percent, 2),
                "unlocked": a.id in user.achievements,
            })

        badges = [{**b.model_dump(), "unlocked": b.id in user.badges} for b in self.badges]
        return {
            "userId": user.id,
            "points": user.points,
            "stats": stats.model_dump(),
            "achievements": achievements,
            "badges": badges,
        }
