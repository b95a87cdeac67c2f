# services/context_service.py
from typing import Any, Dict, List
from mentara.core.utils import utc_iso_now
from mentara.api.services.emotion import mood_intensity, emotional_trigger

MAX_TOPICS = 20
MAX_PREVIOUS_EMOTIONS = 50
MAX_PREFERRED_APPROACHES = 5

CONCERN_KEYWORDS = {
    "academic_pressure": ["exam", "test", "grade", "academic", "jee", "neet"],
    "family_expectations": ["family", "parent", "expectation", "gharwale"],
    "career_anxiety": ["career", "job", "future", "placement", "sarkari"],
    "social_issues": ["friend", "social", "relationship", "lonely", "dost"],
    "financial_stress": ["money", "financial", "afford", "paisa"],
    "sleep_issues": ["sleep", "tired", "insomnia", "neend"],
    "college_adjustment": ["hostel", "college", "university", "campus"],
}

MOOD_KEYWORDS = {
    "anxious": ["anxious", "nervous", "worry", "panic", "darr"],
    "sad": ["sad", "depressed", "down", "hopeless", "udaas"],
    "angry": ["angry", "frustrated", "irritated", "mad", "gussa"],
    "overwhelmed": ["overwhelmed", "stressed", "pressure", "tension"],
    "positive": ["happy", "good", "better", "grateful", "khush"],
}

STOP_WORDS = {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
              "am", "is", "are", "was", "were", "feeling", "really", "very"}


def _unique(items: List[Any]) -> List[Any]:
    seen = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def extract_concerns(text: str) -> List[str]:
    return [concern for concern, words in CONCERN_KEYWORDS.items() if any(w in text for w in words)]


def extract_moods(text: str) -> List[str]:
    intensity = mood_intensity(text)
    return [f"{mood}_{intensity}" for mood, words in MOOD_KEYWORDS.items() if any(w in text for w in words)]


def extract_topics(text: str) -> List[str]:
    return [w for w in text.split(" ") if len(w) > 3 and w not in STOP_WORDS][:10]


def update_user_context(context: Dict[str, Any], message: str, ai_response: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold one user message and the generator's reply into the stored context.
    Unknown fields on ``context`` are carried through; missing ones start empty.
    """
    text = message.lower()
    now = utc_iso_now()
    approach = ai_response.get("therapeuticApproach")

    previous_emotions = list(context.get("previousEmotions") or [])
    previous_emotions.append({
        "emotion": ai_response.get("emotionalTone"),
        "intensity": mood_intensity(text),
        "timestamp": now,
        "trigger": emotional_trigger(text),
    })

    progress = dict(context.get("therapeuticProgress") or {})
    if approach:
        entry = dict(progress.get(approach) or {"sessions": 0, "lastUsed": None, "effectiveness": 0})
        entry["sessions"] = entry.get("sessions", 0) + 1
        entry["lastUsed"] = now
        progress[approach] = entry

    approaches = list(context.get("preferredApproaches") or [])
    if approach and approach not in approaches:
        approaches.append(approach)

    if "direct" in text or "straight" in text or "honest" in text:
        personality = "direct"
    elif "gentle" in text or "soft" in text or "careful" in text:
        personality = "gentle"
    else:
        personality = context.get("personality") or "warm"

    return {
        **context,
        "concerns": _unique(list(context.get("concerns") or []) + extract_concerns(text)),
        "moods": _unique(list(context.get("moods") or []) + extract_moods(text)),
        "topics": _unique(list(context.get("topics") or []) + extract_topics(text))[-MAX_TOPICS:],
        "sessionCount": (context.get("sessionCount") or 0) + 1,
        "previousEmotions": previous_emotions[-MAX_PREVIOUS_EMOTIONS:],
        "therapeuticProgress": progress,
        "lastUpdated": now,
        "personality": personality,
        "preferredApproaches": approaches[-MAX_PREFERRED_APPROACHES:],
    }
