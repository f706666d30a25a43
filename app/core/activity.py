# Physical activity levels configured on the scale (AC-1 .. AC-6).
# The scale uses them for its recommended-intake estimate.

ACTIVITY_LEVELS = {
    1: {
        "code": "AC-1",
        "label": "Sedentary",
        "description": "Little or no exercise, desk job",
        "example": "Office work, no regular activity",
    },
    2: {
        "code": "AC-2",
        "label": "Lightly active",
        "description": "Light exercise 1-3 days per week",
        "example": "Occasional walks, housework",
    },
    3: {
        "code": "AC-3",
        "label": "Moderately active",
        "description": "Moderate exercise 3-5 days per week",
        "example": "Regular gym, recreational sports",
    },
    4: {
        "code": "AC-4",
        "label": "Very active",
        "description": "Hard exercise 6-7 days per week",
        "example": "Daily training, amateur athlete",
    },
    5: {
        "code": "AC-5",
        "label": "Extremely active",
        "description": "Very hard exercise plus physically demanding work",
        "example": "Construction work, high-performance sports",
    },
    6: {
        "code": "AC-6",
        "label": "Professional athlete",
        "description": "Intensive professional training every day",
        "example": "Elite athlete, competition preparation",
    },
}


def activity_level_options() -> list[dict]:
    """Select options: value, "AC-n: label" and description."""
    return [
        {
            "value": str(level),
            "label": f"{data['code']}: {data['label']}",
            "description": data["description"],
        }
        for level, data in ACTIVITY_LEVELS.items()
    ]
