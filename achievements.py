import logging

from api.pydantic_models import AchievementDraft

logger = logging.getLogger(__name__)

# Each rule is checked independently against the freshly updated hunt.
# Order only affects the order of the returned list.
ACHIEVEMENT_RULES = [
    {
        "type": "nature-photographer",
        "title": "Nature Photographer",
        "description": "Captured 3 different plant species",
        "check": lambda hunt: hunt.theme == "pollinator-hunt" and hunt.completedStops >= 3,
    },
    {
        "type": "urban-explorer",
        "title": "Urban Explorer",
        "description": "Completed first quest in downtown area",
        "check": lambda hunt: hunt.theme == "urban-nature" and hunt.status == "completed",
    },
    {
        "type": "eco-scholar",
        "title": "Eco Scholar",
        "description": "Answered sustainability questions correctly",
        "check": lambda hunt: hunt.completedStops >= 5,
    },
]


def register_rule(achievement_type, title, description, check, rules=ACHIEVEMENT_RULES):
    """Adds a badge rule. `check` receives the updated Hunt and returns a bool."""
    if any(rule["type"] == achievement_type for rule in rules):
        raise ValueError(f"An achievement rule for '{achievement_type}' already exists")
    rules.append({"type": achievement_type, "title": title, "description": description, "check": check})


def evaluate_achievements(hunt, existing_achievements, rules=ACHIEVEMENT_RULES):
    """
    Returns drafts for every rule the hunt satisfies that the owner has not already earned.
    Pure: nothing is persisted here.
    """
    earned_types = {achievement.type for achievement in existing_achievements}
    drafts = []
    for rule in rules:
        if rule["type"] in earned_types:
            continue
        if rule["check"](hunt):
            drafts.append(AchievementDraft(
                userId=hunt.userId,
                type=rule["type"],
                title=rule["title"],
                description=rule["description"],
            ))
            earned_types.add(rule["type"])
    return drafts


def award_achievements(storage, hunt, rules=ACHIEVEMENT_RULES):
    """Evaluates the rules for the hunt owner and persists any newly earned badges."""
    existing = storage.get_user_achievements(hunt.userId)
    awarded = []
    for draft in evaluate_achievements(hunt, existing, rules=rules):
        achievement = storage.create_achievement(draft)
        logger.info(f"User {hunt.userId} earned achievement '{achievement.type}' on hunt {hunt.id}.")
        awarded.append(achievement)
    return awarded
