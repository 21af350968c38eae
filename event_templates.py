"""
Pre-configured event templates: default settings, days, meal slots
and starter itinerary notes for each kind of event.
"""
from __future__ import annotations

import copy

ALL_FEATURES = {"meals": True, "expenses": True, "itinerary": True, "chat": True}


def _settings(privacy, allow_editing=True, require_approval=False, **features):
    return {
        "privacy": privacy,
        "allow_editing": allow_editing,
        "require_approval": require_approval,
        "features": {**ALL_FEATURES, **features},
    }


EVENT_TEMPLATES = {
    "general": {
        "name": "General Event",
        "description": "A flexible template for any type of gathering",
        "icon": "📅",
        "default_settings": _settings("private", chat=False),
        "default_days": ["day-1", "day-2"],
        "default_meal_slots": ["breakfast", "lunch", "dinner"],
        "sample_data": {
            "itinerary": {"notes": "Add special notes, dietary restrictions, or important information here."},
        },
    },
    "birthday": {
        "name": "Birthday Celebration",
        "description": "Perfect for birthday parties and celebrations",
        "icon": "🎂",
        "default_settings": _settings("invite-only"),
        "default_days": ["party-day"],
        "default_meal_slots": ["brunch", "dinner", "cake"],
        "sample_data": {
            "itinerary": {"notes": "Birthday celebration! Please let us know about any dietary restrictions or allergies."},
            "meals": [
                {"name": "Birthday Cake", "slot": "cake", "description": "Special birthday cake for the celebration"},
            ],
        },
    },
    "vacation": {
        "name": "Vacation Trip",
        "description": "Multi-day trip planning with accommodation and activities",
        "icon": "🏖️",
        "default_settings": _settings("private"),
        "default_days": ["day-1", "day-2", "day-3"],
        "default_meal_slots": ["breakfast", "lunch", "dinner"],
        "sample_data": {
            "itinerary": {"notes": "Vacation planning! Don't forget to pack sunscreen and comfortable shoes."},
            "expenses": [
                {"name": "Accommodation", "category": "accommodation", "description": "Hotel or rental property"},
                {"name": "Transportation", "category": "transport", "description": "Flights, car rental, or gas"},
            ],
        },
    },
    "business": {
        "name": "Business Event",
        "description": "Corporate events, conferences, and team meetings",
        "icon": "💼",
        "default_settings": _settings("invite-only", allow_editing=False, require_approval=True, chat=False),
        "default_days": ["day-1"],
        "default_meal_slots": ["breakfast", "lunch"],
        "sample_data": {
            "itinerary": {"notes": "Professional event. Please arrive 15 minutes early and bring business cards."},
            "meals": [
                {"name": "Continental Breakfast", "slot": "breakfast", "description": "Light breakfast before the meeting"},
                {"name": "Working Lunch", "slot": "lunch", "description": "Catered lunch during the event"},
            ],
        },
    },
    "wedding": {
        "name": "Wedding Celebration",
        "description": "Wedding planning with ceremony and reception",
        "icon": "💒",
        "default_settings": _settings("invite-only", require_approval=True),
        "default_days": ["wedding-day"],
        "default_meal_slots": ["brunch", "cocktail", "dinner"],
        "sample_data": {
            "itinerary": {"notes": "Wedding celebration! Please RSVP with meal preferences and any dietary restrictions."},
            "meals": [
                {"name": "Cocktail Hour", "slot": "cocktail", "description": "Drinks and appetizers before dinner"},
                {"name": "Wedding Dinner", "slot": "dinner", "description": "Main reception dinner"},
            ],
        },
    },
    "party": {
        "name": "Party/Social Event",
        "description": "Casual parties and social gatherings",
        "icon": "🎉",
        "default_settings": _settings("private", itinerary=False),
        "default_days": ["party-day"],
        "default_meal_slots": ["appetizers", "main", "dessert"],
        "sample_data": {
            "itinerary": {"notes": "Let's party! Bring your dancing shoes and appetite for fun."},
            "meals": [
                {"name": "Appetizers & Snacks", "slot": "appetizers", "description": "Light bites and finger foods"},
            ],
        },
    },
    "weekend": {
        "name": "Weekend Getaway",
        "description": "Short weekend trips and getaways",
        "icon": "🌟",
        "default_settings": _settings("private"),
        "default_days": ["friday", "saturday", "sunday"],
        "default_meal_slots": ["breakfast", "lunch", "dinner"],
        "sample_data": {
            "itinerary": {"notes": "Weekend getaway! Pack light and be ready for adventure."},
        },
    },
}

EVENT_TYPES = tuple(EVENT_TEMPLATES)


def get_template(key: str) -> dict:
    """Copy of the named template, falling back to 'general'."""
    return copy.deepcopy(EVENT_TEMPLATES.get(key) or EVENT_TEMPLATES["general"])


def get_template_keys() -> list[str]:
    return list(EVENT_TEMPLATES)


def get_template_options() -> list[dict]:
    return [
        {
            "value": key,
            "label": template["name"],
            "description": template["description"],
            "icon": template["icon"],
        }
        for key, template in EVENT_TEMPLATES.items()
    ]
