import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

RECIPE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{20}$")

Number = Union[int, float]


def is_valid_recipe_id(recipe_id: str) -> bool:
    """Return ``True`` when ``recipe_id`` looks like a Firestore auto-generated id."""

    return bool(recipe_id) and RECIPE_ID_PATTERN.match(recipe_id) is not None


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    title: Optional[str] = None
    image: Optional[str] = None
    ingredients: List[str] = field(default_factory=list)
    instructions: Optional[str] = None
    cuisine: Optional[str] = None
    prep_time: Optional[Number] = None
    categories: List[str] = field(default_factory=list)
    like_count: int = 0
    created_at: Optional[datetime] = None
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "ingredients": list(self.ingredients),
            "instructions": self.instructions,
            "cuisine": self.cuisine,
            "prepTime": self.prep_time,
            "categories": list(self.categories),
            "likeCount": self.like_count,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "userId": self.user_id,
        }


__all__ = ["Recipe", "is_valid_recipe_id"]
