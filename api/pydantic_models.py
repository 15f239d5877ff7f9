import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator
from typing_extensions import Annotated

THEMES = ("urban-nature", "sustainable-shopping", "pollinator-hunt", "zero-waste-picnic")

Theme = Literal["urban-nature", "sustainable-shopping", "pollinator-hunt", "zero-waste-picnic"]
HuntStatus = Literal["active", "completed", "paused"]


# --- LOCATIONS ---
class GeoPoint(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Location(GeoPoint):
    address: Optional[str] = None


# --- STOP CHALLENGES ---
class PhotoChallenge(BaseModel):
    photoPrompt: str


class TriviaChallenge(BaseModel):
    question: str
    options: List[str] = Field(min_length=2)
    correctAnswer: str

    @model_validator(mode="after")
    def _answer_is_an_option(self):
        if self.correctAnswer not in self.options:
            raise ValueError("correctAnswer must be one of the options")
        return self


class TaskChallenge(BaseModel):
    taskDescription: str


# --- STOPS ---
# A stop is a tagged union keyed by `type`; each arm only carries its own challenge fields.
class _StopBase(BaseModel):
    id: str
    title: str
    description: str
    location: GeoPoint
    address: str
    completed: bool = False
    points: int = Field(gt=0)


class PhotoStop(_StopBase):
    type: Literal["photo"] = "photo"
    challenge: PhotoChallenge


class TriviaStop(_StopBase):
    type: Literal["trivia"] = "trivia"
    challenge: TriviaChallenge


class TaskStop(_StopBase):
    type: Literal["task"] = "task"
    challenge: TaskChallenge


Stop = Annotated[Union[PhotoStop, TriviaStop, TaskStop], Field(discriminator="type")]


# --- HUNTS ---
class HuntPayload(BaseModel):
    """What a generator produces: everything a hunt needs except ownership and bookkeeping."""
    title: str
    description: str
    location: Location
    stops: List[Stop] = Field(min_length=1)
    totalPoints: int = 0

    @model_validator(mode="after")
    def _sum_points(self):
        self.totalPoints = sum(stop.points for stop in self.stops)
        return self


class NewHunt(BaseModel):
    userId: str
    theme: Theme
    title: str
    description: str
    location: Location
    stops: List[Stop]
    status: HuntStatus = "active"
    totalPoints: int = 0
    completedStops: int = 0


class Hunt(NewHunt):
    id: int
    createdAt: datetime.datetime


# --- USERS & ACHIEVEMENTS ---
class UpsertUser(BaseModel):
    id: str
    email: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    profileImageUrl: Optional[str] = None


class User(UpsertUser):
    points: int = 0
    location: Optional[Location] = None
    createdAt: datetime.datetime
    updatedAt: datetime.datetime


class AchievementDraft(BaseModel):
    userId: str
    type: str
    title: str
    description: str


class Achievement(AchievementDraft):
    id: int
    earnedAt: datetime.datetime


# --- REQUESTS ---
class CreateHuntRequest(BaseModel):
    theme: str = Field(min_length=1)
    location: Location
    userId: str = Field(min_length=1)


class CompleteStopRequest(BaseModel):
    answer: Optional[str] = None
    photoData: Optional[str] = None


# --- RESPONSES ---
class StopCompletionResult(BaseModel):
    hunt: Hunt
    achievements: List[Achievement] = []
    pointsEarned: int = 0


class ProfileStats(BaseModel):
    totalHunts: int
    completedHunts: int
    totalPoints: int


class ProfileResponse(BaseModel):
    user: User
    achievements: List[Achievement]
    stats: ProfileStats


class HintResponse(BaseModel):
    hint: str


class ThemeSummary(BaseModel):
    theme: Theme
    title: str
    description: str
    templates: List[str]
