import datetime

import pytz
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


db = SQLAlchemy(model_class=Base)


def utc_now():
    return datetime.datetime.now(pytz.utc)


class User(db.Model):
    __tablename__ = 'users'

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True)
    first_name = Column(String(120))
    last_name = Column(String(120))
    profile_image_url = Column(String(512))
    points = Column(Integer, default=0, nullable=False)
    location = Column(JSON)  # {lat, lng, address?}
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f'<User {self.id}>'


class Hunt(db.Model):
    __tablename__ = 'hunts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    theme = Column(String(50), nullable=False)  # urban-nature, sustainable-shopping, pollinator-hunt, zero-waste-picnic
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    location = Column(JSON, nullable=False)
    # Stops stay embedded as a JSON array, matching the API shape.
    stops = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, default='active')  # active, completed, paused
    total_points = Column(Integer, default=0)
    completed_stops = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    def __repr__(self):
        return f'<Hunt {self.id} - {self.user_id} - {self.status}>'


class Achievement(db.Model):
    __tablename__ = 'achievements'
    __table_args__ = (UniqueConstraint('user_id', 'type', name='uq_achievement_user_type'),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    type = Column(String(100), nullable=False)  # nature-photographer, eco-scholar, urban-explorer
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    earned_at = Column(DateTime(timezone=True), default=utc_now)

    def __repr__(self):
        return f'<Achievement {self.user_id} - {self.type}>'
