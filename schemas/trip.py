from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

UNKNOWN = "Unknown"
DEFAULT_STYLE = "General Tourism"


class TripParameters(BaseModel):
    """Answers collected from the user, one field per question."""

    destination: str = UNKNOWN
    duration: Optional[str] = None
    time_of_year: Optional[str] = None
    vacation_styles: List[str] = Field(default_factory=list)
    departure_city: Optional[str] = None
    currency: str = "USD"
    number_adults: int = Field(default=1, ge=1)
    number_kids: int = Field(default=0, ge=0)
    luxury_level: Optional[int] = Field(default=None, ge=1, le=5)
    budget: Optional[float] = None
    local_travel: bool = False
    suggest_destination: bool = True

    def set_destination(self, destination: Optional[str]) -> None:
        destination = (destination or "").strip()
        self.destination = destination or UNKNOWN
        self.suggest_destination = self.destination == UNKNOWN

    def toggle_style(self, style: str) -> bool:
        """Add `style` if absent, remove it if present. Returns True when added."""
        if style in self.vacation_styles:
            self.vacation_styles.remove(style)
            return False
        self.vacation_styles.append(style)
        return True

    def freeze_styles(self) -> List[str]:
        if not self.vacation_styles:
            self.vacation_styles = [DEFAULT_STYLE]
        return self.vacation_styles


class BudgetBreakdown(BaseModel):
    flights: str
    transportation: str
    accommodation: str
    activities: str
    food: str
    total: str
    not_enough_budget: bool = False

    # the model sometimes answers with bare numbers
    @field_validator(
        "flights", "transportation", "accommodation", "activities", "food", "total",
        mode="before",
    )
    @classmethod
    def _coerce_to_str(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class Itinerary(BaseModel):
    destination: Optional[str] = None
    title: str
    highlights: List[str]
    timing: str
    getting_around: str
    sample_itinerary: List[str]
    locations: List[str]
    budget: BudgetBreakdown


def fallback_itinerary() -> dict:
    """Itinerary used when the model reply cannot be parsed."""
    return {
        "destination": UNKNOWN,
        "title": "Your Trip",
        "highlights": ["Unable to generate a detailed itinerary. Please try again."],
        "timing": "No timing information available.",
        "getting_around": "No transportation information available.",
        "sample_itinerary": ["No daily plan available"],
        "locations": ["No specific locations available"],
        "budget": {
            "flights": "N/A",
            "transportation": "N/A",
            "accommodation": "N/A",
            "activities": "N/A",
            "food": "N/A",
            "total": "N/A",
            "not_enough_budget": False,
        },
    }
