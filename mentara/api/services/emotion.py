# services/emotion.py
"""Keyword heuristics shared by the response generator and the user-context update."""
from typing import Dict, Any, List

# emotion -> (cue words, weight per cue, score multiplier); scores cap at 10
EMOTION_LEXICON: Dict[str, Any] = {
    "anxiety": (["anxious", "nervous", "worry", "panic", "afraid", "scared", "tense", "stressed", "overwhelmed"], 1.0, 2.0),
    "depression": (["sad", "depressed", "down", "hopeless", "empty", "numb", "worthless", "guilty"], 1.5, 1.5),
    "stress": (["stressed", "pressure", "overwhelmed", "burden", "heavy", "too much", "cant handle"], 1.2, 2.0),
    "anger": (["angry", "mad", "furious", "irritated", "frustrated", "annoyed", "hate"], 1.3, 1.8),
    "hope": (["hope", "better", "improve", "good", "positive", "forward", "future", "possible"], 1.0, 1.5),
    "confidence": (["confident", "sure", "capable", "strong", "can do", "will manage", "believe"], 1.2, 1.8),
    "overwhelm": (["overwhelmed", "too much", "cant cope", "drowning", "suffocating", "breaking down"], 2.0, 1.5),
    "loneliness": (["lonely", "alone", "isolated", "no one", "nobody", "by myself", "no friends"], 1.5, 2.0),
}

INTENSIFIERS = ["very", "extremely", "really", "so", "too", "super"]

VERY_INTENSE = ["extremely", "really really", "so so", "unbearable", "cant take"]
INTENSE = ["very", "really", "so", "quite", "pretty"]
MODERATE = ["somewhat", "kind of", "a bit", "little bit"]


def emotional_dimensions(text: str) -> Dict[str, float]:
    text = text.lower()
    scores = {}
    for emotion, (words, weight, multiplier) in EMOTION_LEXICON.items():
        score = sum(weight for word in words if word in text)
        if emotion == "anxiety":
            score += sum(0.5 for word in INTENSIFIERS if word in text.split())
        scores[emotion] = min(score * multiplier, 10)
    return scores


def analyze_emotional_state(text: str) -> Dict[str, Any]:
    dimensions = emotional_dimensions(text)
    primary, intensity = max(dimensions.items(), key=lambda item: item[1])
    if intensity == 0:
        primary = "neutral"
    return {
        "primaryEmotion": primary,
        "intensity": intensity,
        "dimensions": dimensions,
    }


def mood_intensity(text: str) -> str:
    text = text.lower()
    words = text.split()
    if any(phrase in text for phrase in VERY_INTENSE):
        return "high"
    if any(word in words for word in INTENSE):
        return "medium"
    if any(phrase in text for phrase in MODERATE):
        return "low"
    return "medium"


def emotional_trigger(text: str) -> str:
    text = text.lower()
    if "exam" in text or "test" in text:
        return "academic_stress"
    if "family" in text or "parent" in text:
        return "family_conflict"
    if "friend" in text or "social" in text:
        return "social_situation"
    if "future" in text or "career" in text:
        return "uncertainty"
    return "general_life_stress"


MENTAL_HEALTH_KEYWORDS: List[str] = [
    # emotions and feelings
    "feel", "feeling", "emotion", "mood", "anxiety", "anxious", "stress", "stressed",
    "depress", "sad", "happy", "angry", "fear", "worry", "panic", "overwhelm", "lonely",
    "guilt", "shame", "hopeless", "helpless", "frustrated", "irritated", "nervous",
    # conditions
    "adhd", "ocd", "ptsd", "bipolar", "eating disorder", "insomnia",
    "burnout", "trauma", "phobia", "addiction",
    # wellbeing
    "wellbeing", "well-being", "self-care", "mental health", "therapy", "counseling",
    "meditation", "mindfulness", "breathing", "relaxation", "sleep", "rest",
    # academic and social
    "exam", "test", "study", "grade", "academic", "school", "college", "university",
    "pressure", "expectation", "parent", "family", "relationship", "friend", "social",
    "career", "job", "future", "decision", "choice", "confusion",
    # coping and support
    "help", "support", "cope", "coping", "manage", "handle", "deal with", "overcome",
    "technique", "strategy", "advice", "guidance", "talk", "listen", "understand",
    "how are you", "what should i do", "i need", "can you help", "struggling with",
    "going through", "dealing with", "having trouble", "difficult time",
]

OFF_TOPIC_KEYWORDS: List[str] = [
    "code", "coding", "programming", "python", "javascript", "html", "css",
    "math", "calculate", "formula", "equation", "solve",
    "recipe", "cook", "restaurant",
    "movie", "film", "song", "game",
    "weather", "news", "sport", "football", "cricket",
    "joke", "meme",
    "capital of", "geography",
    "translate", "meaning of",
    "essay", "homework",
]

GREETINGS = ["hi", "hello", "hey"]


def is_mental_health_related(message: str) -> Dict[str, Any]:
    """
    Loose topic filter. Greetings, anything touching feelings or coping, and
    anything ambiguous pass; only clearly off-topic requests are redirected.
    """
    text = message.lower().strip()
    words = text.replace("?", " ").replace("!", " ").replace(",", " ").split()

    if len(text) < 50 and any(greeting in words for greeting in GREETINGS):
        return {"is_related": True}

    if any(keyword in text for keyword in MENTAL_HEALTH_KEYWORDS):
        return {"is_related": True}

    if any(keyword in text for keyword in OFF_TOPIC_KEYWORDS):
        return {"is_related": False, "reason": "off-topic"}

    if len(text) > 20:
        return {"is_related": True, "reason": "needs-clarification"}
    return {"is_related": True}
