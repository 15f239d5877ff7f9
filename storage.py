"""
Persistence layer for users, hunts and achievements.

`HuntStorage` is the interface the hunt engine and the API depend on. Two
backends implement it:

* `MemStorage` keeps everything in process-local dictionaries (the default, and
  what the tests use).
* `DatabaseStorage` persists through Flask-SQLAlchemy and must be used inside an
  application context.

Both backends hand out copies of their records, so callers can never mutate
stored state without going through `update_hunt` and friends. Read-modify-write
sequences are guarded by per-entity locks (`hunt_lock`, `user_lock`) and
multi-step writes are grouped with `transaction()`.
"""

import logging
import threading
import weakref
from abc import ABC, abstractmethod
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

import models
from api.pydantic_models import Achievement, AchievementDraft, Hunt, Location, NewHunt, UpsertUser, User
from errors import InvariantViolation, NotFoundError, RequestValidationError

logger = logging.getLogger(__name__)

# Fields callers may change on an existing hunt. Ownership, theme and bookkeeping stay fixed.
MUTABLE_HUNT_FIELDS = {'stops', 'completedStops', 'status', 'title', 'description'}


class _LockRegistry:
    """
    Hands out one re-entrant lock per key, created on first use.
    A lock is dropped once no caller holds a reference to it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def get(self, key):
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def __len__(self):
        with self._guard:
            return len(self._locks)


def _as_model(model_cls, data):
    if isinstance(data, model_cls):
        return data
    return model_cls.model_validate(data)


def _check_hunt_updates(fields):
    unknown = set(fields) - MUTABLE_HUNT_FIELDS
    if unknown:
        raise RequestValidationError(f"Cannot update hunt fields: {', '.join(sorted(unknown))}")


def _dump_value(value):
    if isinstance(value, list):
        return [_dump_value(item) for item in value]
    if hasattr(value, 'model_dump'):
        return value.model_dump(mode="json")
    return value


class HuntStorage(ABC):

    def __init__(self):
        self._locks = _LockRegistry()

    def hunt_lock(self, hunt_id):
        return self._locks.get(('hunt', hunt_id))

    def user_lock(self, user_id):
        return self._locks.get(('user', user_id))

    @abstractmethod
    def transaction(self):
        """Context manager grouping several writes so they are committed together."""

    # --- Users ---
    @abstractmethod
    def get_user(self, user_id) -> User: ...

    @abstractmethod
    def get_user_by_email(self, email) -> User: ...

    @abstractmethod
    def upsert_user(self, data) -> User: ...

    @abstractmethod
    def update_user_points(self, user_id, delta) -> User: ...

    @abstractmethod
    def update_user_location(self, user_id, location) -> User: ...

    # --- Hunts ---
    @abstractmethod
    def create_hunt(self, data) -> Hunt: ...

    @abstractmethod
    def get_hunt(self, hunt_id) -> Hunt: ...

    @abstractmethod
    def get_user_hunts(self, user_id) -> list: ...

    @abstractmethod
    def get_active_hunt(self, user_id) -> Hunt: ...

    @abstractmethod
    def update_hunt(self, hunt_id, **fields) -> Hunt: ...

    # --- Achievements ---
    @abstractmethod
    def create_achievement(self, data) -> Achievement: ...

    @abstractmethod
    def get_user_achievements(self, user_id) -> list: ...

    def health_check(self):
        try:
            self.get_user_hunts('__health_check__')
            return {"status": "OK", "details": f"{type(self).__name__} is reachable."}
        except Exception as e:
            return {"status": "ERROR", "details": f"Storage query failed: {str(e)}"}


class MemStorage(HuntStorage):
    """
    In-memory backend. One write lock serializes every mutation and transaction.
    Records are replaced, never mutated in place, so a transaction snapshot is a shallow copy.
    """

    def __init__(self):
        super().__init__()
        self._write_lock = threading.RLock()
        self._users = {}
        self._hunts = {}
        self._achievements = []
        self._next_hunt_id = 1
        self._next_achievement_id = 1
        self._transaction_depth = 0

    @contextmanager
    def transaction(self):
        """Holds the write lock; the outermost transaction restores the previous state on error."""
        with self._write_lock:
            if self._transaction_depth:
                self._transaction_depth += 1
                try:
                    yield self
                finally:
                    self._transaction_depth -= 1
                return

            snapshot = (dict(self._users), dict(self._hunts), list(self._achievements),
                        self._next_hunt_id, self._next_achievement_id)
            self._transaction_depth = 1
            try:
                yield self
            except Exception:
                (self._users, self._hunts, self._achievements,
                 self._next_hunt_id, self._next_achievement_id) = snapshot
                logger.warning("Rolled back in-memory transaction after an error.")
                raise
            finally:
                self._transaction_depth = 0

    # --- Users ---
    def get_user(self, user_id):
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.model_copy(deep=True)

    def get_user_by_email(self, email):
        with self._write_lock:
            for user in self._users.values():
                if email and user.email == email:
                    return user.model_copy(deep=True)
        raise NotFoundError("User not found")

    def upsert_user(self, data):
        user_data = _as_model(UpsertUser, data)
        now = models.utc_now()
        with self._write_lock:
            existing = self._users.get(user_data.id)
            if existing is None:
                user = User(**user_data.model_dump(), points=0, createdAt=now, updatedAt=now)
            else:
                changes = user_data.model_dump(exclude_unset=True)
                user = existing.model_copy(update={**changes, 'updatedAt': now})
            self._users[user.id] = user
            return user.model_copy(deep=True)

    def update_user_points(self, user_id, delta):
        with self._write_lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError("User not found")
            new_total = (user.points or 0) + delta
            if new_total < 0:
                raise InvariantViolation("Not enough points for this operation")
            user = user.model_copy(update={'points': new_total, 'updatedAt': models.utc_now()})
            self._users[user_id] = user
            return user.model_copy(deep=True)

    def update_user_location(self, user_id, location):
        location = _as_model(Location, location)
        with self._write_lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError("User not found")
            user = user.model_copy(update={'location': location, 'updatedAt': models.utc_now()})
            self._users[user_id] = user
            return user.model_copy(deep=True)

    # --- Hunts ---
    def create_hunt(self, data):
        new_hunt = _as_model(NewHunt, data)
        with self._write_lock:
            hunt = Hunt.model_validate({
                **new_hunt.model_dump(),
                'id': self._next_hunt_id,
                'createdAt': models.utc_now(),
                'completedStops': 0,
            })
            self._hunts[hunt.id] = hunt
            self._next_hunt_id += 1
            return hunt.model_copy(deep=True)

    def get_hunt(self, hunt_id):
        hunt = self._hunts.get(hunt_id)
        if hunt is None:
            raise NotFoundError("Hunt not found")
        return hunt.model_copy(deep=True)

    def get_user_hunts(self, user_id):
        with self._write_lock:
            return [hunt.model_copy(deep=True) for hunt in self._hunts.values() if hunt.userId == user_id]

    def get_active_hunt(self, user_id):
        with self._write_lock:
            active = [hunt for hunt in self._hunts.values() if hunt.userId == user_id and hunt.status == 'active']
        if not active:
            raise NotFoundError("No active hunt found")
        if len(active) > 1:
            logger.warning(f"User {user_id} has {len(active)} active hunts; using the most recent.")
        return max(active, key=lambda hunt: hunt.id).model_copy(deep=True)

    def update_hunt(self, hunt_id, **fields):
        _check_hunt_updates(fields)
        with self._write_lock:
            existing = self._hunts.get(hunt_id)
            if existing is None:
                raise NotFoundError("Hunt not found")
            merged = existing.model_dump()
            merged.update({key: _dump_value(value) for key, value in fields.items()})
            hunt = Hunt.model_validate(merged)
            self._hunts[hunt_id] = hunt
            return hunt.model_copy(deep=True)

    # --- Achievements ---
    def create_achievement(self, data):
        draft = _as_model(AchievementDraft, data)
        with self._write_lock:
            if any(a.userId == draft.userId and a.type == draft.type for a in self._achievements):
                raise InvariantViolation(f"Achievement '{draft.type}' already earned")
            achievement = Achievement(**draft.model_dump(), id=self._next_achievement_id, earnedAt=models.utc_now())
            self._achievements.append(achievement)
            self._next_achievement_id += 1
            return achievement.model_copy(deep=True)

    def get_user_achievements(self, user_id):
        with self._write_lock:
            return [a.model_copy(deep=True) for a in self._achievements if a.userId == user_id]


class DatabaseStorage(HuntStorage):
    """Flask-SQLAlchemy backend. Every call needs an active application context."""

    def __init__(self, database=models.db):
        super().__init__()
        self.db = database
        self._local = threading.local()

    @contextmanager
    def transaction(self):
        depth = getattr(self._local, 'depth', 0)
        self._local.depth = depth + 1
        try:
            yield self
            if depth == 0:
                self.db.session.commit()
        except Exception:
            if depth == 0:
                self.db.session.rollback()
            raise
        finally:
            self._local.depth = depth

    def _save(self):
        """Commits immediately, unless a surrounding transaction will commit for us."""
        try:
            if getattr(self._local, 'depth', 0):
                self.db.session.flush()
            else:
                self.db.session.commit()
        except IntegrityError as e:
            self.db.session.rollback()
            raise InvariantViolation("Conflicting record already exists", details={"error": str(e.orig)})

    # --- Row conversion ---
    @staticmethod
    def _user_from_row(row):
        return User(
            id=row.id,
            email=row.email,
            firstName=row.first_name,
            lastName=row.last_name,
            profileImageUrl=row.profile_image_url,
            points=row.points or 0,
            location=row.location,
            createdAt=row.created_at,
            updatedAt=row.updated_at,
        )

    @staticmethod
    def _hunt_from_row(row):
        return Hunt.model_validate({
            'id': row.id,
            'userId': row.user_id,
            'theme': row.theme,
            'title': row.title,
            'description': row.description,
            'location': row.location,
            'stops': row.stops,
            'status': row.status,
            'totalPoints': row.total_points or 0,
            'completedStops': row.completed_stops or 0,
            'createdAt': row.created_at,
        })

    @staticmethod
    def _achievement_from_row(row):
        return Achievement(
            id=row.id,
            userId=row.user_id,
            type=row.type,
            title=row.title,
            description=row.description,
            earnedAt=row.earned_at,
        )

    def _get_user_row(self, user_id):
        row = self.db.session.get(models.User, user_id)
        if row is None:
            raise NotFoundError("User not found")
        return row

    def _get_hunt_row(self, hunt_id):
        row = self.db.session.get(models.Hunt, hunt_id)
        if row is None:
            raise NotFoundError("Hunt not found")
        return row

    # --- Users ---
    def get_user(self, user_id):
        return self._user_from_row(self._get_user_row(user_id))

    def get_user_by_email(self, email):
        row = models.User.query.filter_by(email=email).first() if email else None
        if row is None:
            raise NotFoundError("User not found")
        return self._user_from_row(row)

    def upsert_user(self, data):
        user_data = _as_model(UpsertUser, data)
        changes = user_data.model_dump(exclude_unset=True)
        row = self.db.session.get(models.User, user_data.id)
        if row is None:
            row = models.User(id=user_data.id, points=0)
            self.db.session.add(row)
        column_map = {'email': 'email', 'firstName': 'first_name', 'lastName': 'last_name',
                      'profileImageUrl': 'profile_image_url'}
        for field, column in column_map.items():
            if field in changes:
                setattr(row, column, changes[field])
        row.updated_at = models.utc_now()
        self._save()
        return self._user_from_row(row)

    def update_user_points(self, user_id, delta):
        with self.user_lock(user_id):
            row = self._get_user_row(user_id)
            if (row.points or 0) + delta < 0:
                raise InvariantViolation("Not enough points for this operation")
            models.User.query.filter_by(id=user_id).update(
                {models.User.points: models.User.points + delta, models.User.updated_at: models.utc_now()},
                synchronize_session=False,
            )
            self._save()
            self.db.session.refresh(row)
            return self._user_from_row(row)

    def update_user_location(self, user_id, location):
        location = _as_model(Location, location)
        with self.user_lock(user_id):
            row = self._get_user_row(user_id)
            row.location = location.model_dump(mode="json")
            row.updated_at = models.utc_now()
            self._save()
            return self._user_from_row(row)

    # --- Hunts ---
    def create_hunt(self, data):
        new_hunt = _as_model(NewHunt, data).model_dump(mode="json")
        row = models.Hunt(
            user_id=new_hunt['userId'],
            theme=new_hunt['theme'],
            title=new_hunt['title'],
            description=new_hunt['description'],
            location=new_hunt['location'],
            stops=new_hunt['stops'],
            status=new_hunt['status'],
            total_points=new_hunt['totalPoints'],
            completed_stops=0,
            created_at=models.utc_now(),
        )
        self.db.session.add(row)
        self._save()
        return self._hunt_from_row(row)

    def get_hunt(self, hunt_id):
        return self._hunt_from_row(self._get_hunt_row(hunt_id))

    def get_user_hunts(self, user_id):
        rows = models.Hunt.query.filter_by(user_id=user_id).order_by(models.Hunt.id.asc()).all()
        return [self._hunt_from_row(row) for row in rows]

    def get_active_hunt(self, user_id):
        row = (models.Hunt.query
               .filter_by(user_id=user_id, status='active')
               .order_by(models.Hunt.id.desc())
               .first())
        if row is None:
            raise NotFoundError("No active hunt found")
        return self._hunt_from_row(row)

    def update_hunt(self, hunt_id, **fields):
        _check_hunt_updates(fields)
        row = self._get_hunt_row(hunt_id)
        merged = self._hunt_from_row(row).model_dump()
        merged.update({key: _dump_value(value) for key, value in fields.items()})
        hunt = Hunt.model_validate(merged).model_dump(mode="json")
        row.stops = hunt['stops']
        row.completed_stops = hunt['completedStops']
        row.status = hunt['status']
        row.title = hunt['title']
        row.description = hunt['description']
        self._save()
        return self._hunt_from_row(row)

    # --- Achievements ---
    def create_achievement(self, data):
        draft = _as_model(AchievementDraft, data)
        row = models.Achievement(
            user_id=draft.userId,
            type=draft.type,
            title=draft.title,
            description=draft.description,
            earned_at=models.utc_now(),
        )
        self.db.session.add(row)
        self._save()
        return self._achievement_from_row(row)

    def get_user_achievements(self, user_id):
        rows = models.Achievement.query.filter_by(user_id=user_id).order_by(models.Achievement.id.asc()).all()
        return [self._achievement_from_row(row) for row in rows]
