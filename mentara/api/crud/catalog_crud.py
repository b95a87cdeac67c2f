# crud/catalog_crud.py
from typing import Any, Callable, Dict, List, Optional
from mentara.core import keys
from mentara.core.db import KeyValueStore
from mentara.core.utils import now_ms

COUNSELORS = "counselors"
SECTIONS = "content_sections"
PRODUCTS = "products"


def counselor_defaults(body: Dict[str, Any]) -> Dict[str, Any]:
    specialization = body.get("specialization")
    if not isinstance(specialization, list):
        specialization = [specialization] if specialization else []
    return {
        "rating": body.get("rating") or 4.5,
        "experience": body.get("experience") or "0 years",
        "price": body.get("price") or 500,
        "availability": body["availability"] if isinstance(body.get("availability"), list) else ["Mon", "Wed", "Fri"],
        "languages": body["languages"] if isinstance(body.get("languages"), list) else ["English", "Hindi"],
        "sessionTypes": body["sessionTypes"] if isinstance(body.get("sessionTypes"), list) else ["video"],
        "credentials": body.get("credentials") or "",
        "specialization": specialization,
    }


def section_defaults(body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "rating": body.get("rating") or 4.5,
        "duration": body.get("duration") or "5 min read",
        "difficulty": body.get("difficulty") or "beginner",
        "author": body.get("author") or "Mentara Team",
        "tags": body["tags"] if isinstance(body.get("tags"), list) else [],
    }


def product_defaults(body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "rating": body.get("rating") or 4.5,
        "reviews": body.get("reviews") or 0,
        "inStock": body["inStock"] if body.get("inStock") is not None else True,
        "benefits": body["benefits"] if isinstance(body.get("benefits"), list) else [],
    }


DEFAULT_COUNSELORS = [
    {
        "id": "1",
        "name": "Dr. Priya Sharma",
        "specialization": ["Anxiety", "Stress Management", "Academic Pressure"],
        "rating": 4.8,
        "experience": "8 years",
        "languages": ["English", "Hindi"],
        "price": 800,
        "availability": ["Mon", "Wed", "Fri"],
        "bio": "Specialized in helping students manage academic stress and build resilience.",
        "sessionTypes": ["video", "audio", "chat"],
        "credentials": "M.A. Psychology, Ph.D. Clinical Psychology",
    },
    {
        "id": "2",
        "name": "Dr. Rajesh Kumar",
        "specialization": ["Depression", "Relationship Issues", "Career Guidance"],
        "rating": 4.7,
        "experience": "12 years",
        "languages": ["English", "Hindi", "Gujarati"],
        "price": 1000,
        "availability": ["Tue", "Thu", "Sat"],
        "bio": "Expert in cognitive behavioral therapy with focus on young adults and career transitions.",
        "sessionTypes": ["video", "audio"],
        "credentials": "M.Phil. Psychology, RCI Licensed",
    },
    {
        "id": "3",
        "name": "Dr. Meera Patel",
        "specialization": ["ADHD", "Learning Disabilities", "Social Anxiety"],
        "rating": 4.9,
        "experience": "6 years",
        "languages": ["English", "Hindi", "Marathi"],
        "price": 750,
        "availability": ["Mon", "Tue", "Wed", "Thu"],
        "bio": "Passionate about helping students overcome learning challenges and build confidence.",
        "sessionTypes": ["video", "chat"],
        "credentials": "M.A. Clinical Psychology, PGDM",
    },
]

DEFAULT_RESOURCES = [
    {
        "id": "1",
        "title": "Understanding Exam Anxiety",
        "description": "Learn practical techniques to manage pre-exam stress and perform better under pressure.",
        "type": "article",
        "category": "Stress Management",
        "duration": "8 min read",
        "rating": 4.8,
        "difficulty": "beginner",
        "author": "Dr. Meera Singh",
        "tags": ["anxiety", "exams", "breathing", "preparation"],
        "content": "Comprehensive guide on managing exam anxiety with proven techniques...",
    },
    {
        "id": "2",
        "title": "5-Minute Morning Meditation",
        "description": "Start your day with clarity and focus using this guided meditation specifically for students.",
        "type": "audio",
        "category": "Mindfulness",
        "duration": "5 min",
        "rating": 4.9,
        "difficulty": "beginner",
        "author": "Mentara Team",
        "tags": ["meditation", "morning", "focus", "routine"],
        "content": "Guided meditation audio content for students...",
    },
    {
        "id": "3",
        "title": "Building Healthy Study Habits",
        "description": "Watch this comprehensive guide on creating sustainable study routines that work.",
        "type": "video",
        "category": "Study Skills",
        "duration": "12 min",
        "rating": 4.7,
        "difficulty": "intermediate",
        "author": "Prof. Rajesh Kumar",
        "tags": ["study", "habits", "productivity", "time-management"],
        "content": "Video content on building effective study habits...",
    },
]

DEFAULT_PRODUCTS = [
    {
        "id": "1",
        "name": "Mindfulness Journal",
        "description": "Guided prompts for daily reflection and gratitude.",
        "category": "Journals",
        "price": 499,
        "rating": 4.7,
        "reviews": 128,
        "inStock": True,
        "benefits": ["Reduces stress", "Builds self-awareness"],
    },
    {
        "id": "2",
        "name": "Stress Relief Kit",
        "description": "Stress ball, breathing card, and calming tea samples.",
        "category": "Wellness Kits",
        "price": 899,
        "rating": 4.6,
        "reviews": 74,
        "inStock": True,
        "benefits": ["Quick anxiety relief", "Portable"],
    },
]


class CatalogRepository:
    """
    A named list of records stored as one document. Item ids are millisecond
    timestamps; updates and deletes rewrite the whole list.
    """

    def __init__(self, store: KeyValueStore, name: str,
                 apply_defaults: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
                 fallback: Optional[List[Dict[str, Any]]] = None):
        self.store = store
        self.key = keys.catalog_key(name)
        self.apply_defaults = apply_defaults
        self.fallback = fallback

    async def list(self) -> List[Dict[str, Any]]:
        return await self.store.get(self.key) or []

    async def list_public(self) -> List[Dict[str, Any]]:
        """Stored items, or the built-in defaults when nothing has been stored yet."""
        items = await self.store.get(self.key)
        if items is None and self.fallback is not None:
            return [dict(item) for item in self.fallback]
        return items or []

    async def add(self, body: Dict[str, Any]) -> Dict[str, Any]:
        items = await self.list()
        taken = {item.get("id") for item in items}
        new_id = now_ms()
        while str(new_id) in taken:
            new_id += 1
        item = {**body, "id": str(new_id)}
        if self.apply_defaults:
            item.update(self.apply_defaults(body))
        items.append(item)
        await self.store.set(self.key, items)
        return item

    async def update(self, item_id: str, body: Dict[str, Any]) -> bool:
        items = await self.list()
        found = False
        updated = []
        for item in items:
            if item.get("id") == item_id:
                item = {**item, **body, "id": item_id}
                found = True
            updated.append(item)
        await self.store.set(self.key, updated)
        return found

    async def delete(self, item_id: str) -> bool:
        items = await self.list()
        remaining = [item for item in items if item.get("id") != item_id]
        await self.store.set(self.key, remaining)
        return len(remaining) != len(items)

    async def seed(self, items: List[Dict[str, Any]]) -> int:
        await self.store.set(self.key, [dict(item) for item in items])
        return len(items)


def counselor_catalog(store: KeyValueStore) -> CatalogRepository:
    return CatalogRepository(store, COUNSELORS, counselor_defaults, DEFAULT_COUNSELORS)


def section_catalog(store: KeyValueStore) -> CatalogRepository:
    return CatalogRepository(store, SECTIONS, section_defaults, DEFAULT_RESOURCES)


def product_catalog(store: KeyValueStore) -> CatalogRepository:
    return CatalogRepository(store, PRODUCTS, product_defaults)
