import google.generativeai as genai
from typing import List, Dict, Any, Optional
import asyncio
import hashlib
import json
import logging
import threading
from datetime import datetime, timedelta
from mentara.core.config import settings
from mentara.core.security import safety_service
from mentara.api.services.emotion import analyze_emotional_state, is_mental_health_related

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """You are Mentara AI, an empathetic mental wellness companion for Indian students.

IMPORTANT INSTRUCTIONS:
- You are ONLY designed to discuss mental health, emotional wellbeing, and related topics:
  * Mental health (anxiety, depression, stress, etc.)
  * Emotional wellbeing and self-care
  * Academic stress and pressure
  * Relationship and social issues
  * Sleep, mindfulness, and coping strategies
  * Career anxiety and decision-making stress

HANDLING UNCLEAR MESSAGES:
- If a message is vague, don't reject it. Ask a gentle clarifying question about what's on their mind.
- Only redirect when the request is CLEARLY unrelated (coding, math problems, recipes).

FORMATTING & TONE:
- Use **bold** for key points, *italics* for gentle suggestions, bullet points for techniques.
- Be warm, supportive, and conversational. Acknowledge emotions and validate feelings.
- Keep responses concise but meaningful (2-4 paragraphs max).
- You are first-aid support, not therapy. Never diagnose; refer to counselors for complex issues.
- NEVER repeat yourself or provide the same response multiple times."""

OFF_TOPIC_REDIRECT = (
    "I'm specifically designed to support mental wellness and emotional wellbeing. "
    "I'd love to help you with any stress, anxiety, or emotional concerns you're experiencing. "
    "How are you feeling today?\n\n*I'm here to talk about:*\n"
    "- **Mental health** and emotional wellbeing\n"
    "- **Stress and anxiety** management\n"
    "- **Academic pressure** and study concerns\n"
    "- **Relationships** and social challenges\n"
    "- **Self-care** and coping strategies"
)

SUGGESTIONS = {
    "anxiety": ["Try 4-7-8 breathing", "Name 5 things you can see", "Talk about what's worrying you"],
    "stress": ["Break tasks into small steps", "Take a 10-minute walk", "Plan tomorrow in 3 tasks"],
    "depression": ["Step outside for some sunlight", "Reach out to a friend", "Write down one small win"],
    "overwhelm": ["Pick just one thing to do next", "Try a 2-minute body scan", "Talk to a counselor"],
    "loneliness": ["Message someone you trust", "Join a campus club", "Book a session with a counselor"],
    "anger": ["Pause and count to ten", "Write down what triggered you", "Go for a quick walk"],
}

APPROACHES = {
    "anxiety": "cbt",
    "stress": "problem_solving",
    "depression": "behavioral_activation",
    "overwhelm": "mindfulness",
    "loneliness": "supportive",
    "anger": "dbt",
}


class GeminiService:
    """Service for interacting with Google Gemini AI with rate limiting and caching"""

    def __init__(self):
        self.model = None
        self._initialize_model()

        # Rate limiting (Gemini free tier: 15 RPM)
        self.requests_per_minute = 10
        self.max_tokens_per_day = 50000
        self.request_timestamps = []
        self.daily_token_count = 0
        self.last_reset_date = datetime.now().date()

        # Caching for identical requests
        self.response_cache = {}
        self.cache_ttl = 3600

        # Backoff strategy
        self.backoff_until = None
        self.consecutive_failures = 0

        # generate() runs on executor threads; guards the counters and the cache
        self._lock = threading.Lock()

    def _initialize_model(self):
        """Initialize the Gemini model"""
        try:
            if not settings.GEMINI_API_KEY or settings.GEMINI_API_KEY.strip() == "":
                logger.warning("No Gemini API key found - running in fallback mode")
                self.model = None
                return

            genai.configure(api_key=settings.GEMINI_API_KEY)
            self.model = genai.GenerativeModel(settings.GEMINI_MODEL, system_instruction=SYSTEM_INSTRUCTION)
            logger.info("Gemini model initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Gemini model: {e} - running in fallback mode")
            self.model = None

    def _check_rate_limit(self) -> bool:
        """Check if we can make an API request based on rate limits"""
        now = datetime.now()

        if now.date() > self.last_reset_date:
            self.daily_token_count = 0
            self.last_reset_date = now.date()
            logger.info("Daily token counter reset")

        if self.backoff_until and now < self.backoff_until:
            remaining = (self.backoff_until - now).seconds
            logger.warning(f"In backoff period, {remaining} seconds remaining")
            return False

        # keep only the last minute
        cutoff = now - timedelta(minutes=1)
        self.request_timestamps = [ts for ts in self.request_timestamps if ts > cutoff]

        if len(self.request_timestamps) >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded: {len(self.request_timestamps)}/{self.requests_per_minute} RPM")
            return False

        return True

    def _get_cache_key(self, contents: List[Dict[str, Any]], temperature: float) -> str:
        content = f"{json.dumps(contents, sort_keys=True)}_{temperature}"
        return hashlib.md5(content.encode()).hexdigest()

    def _get_cached_response(self, cache_key: str) -> Optional[str]:
        """Get cached response if available and not expired"""
        if cache_key not in self.response_cache:
            return None

        cached_data = self.response_cache[cache_key]
        if datetime.now() - cached_data['timestamp'] > timedelta(seconds=self.cache_ttl):
            del self.response_cache[cache_key]
            return None

        logger.debug("Using cached response for request")
        return cached_data['response']

    def _cache_response(self, cache_key: str, response: str):
        self.response_cache[cache_key] = {
            'response': response,
            'timestamp': datetime.now()
        }

        # keep last 100 entries
        if len(self.response_cache) > 100:
            oldest_key = min(self.response_cache.keys(),
                             key=lambda k: self.response_cache[k]['timestamp'])
            del self.response_cache[oldest_key]

    def _handle_rate_limit_error(self, error: Exception):
        """Handle rate limit errors with exponential backoff"""
        self.consecutive_failures += 1
        backoff_seconds = min(2 ** self.consecutive_failures * 30, 600)
        self.backoff_until = datetime.now() + timedelta(seconds=backoff_seconds)
        logger.warning(f"Rate limit hit. Backing off for {backoff_seconds} seconds")

    def get_api_status(self) -> Dict[str, Any]:
        """Get current API status and usage statistics"""
        now = datetime.now()
        cutoff = now - timedelta(minutes=1)
        with self._lock:
            self.request_timestamps = [ts for ts in self.request_timestamps if ts > cutoff]
            return {
                "api_key_configured": self.model is not None,
                "requests_this_minute": len(self.request_timestamps),
                "requests_per_minute_limit": self.requests_per_minute,
                "tokens_used_today": self.daily_token_count,
                "daily_token_limit": self.max_tokens_per_day,
                "in_backoff": self.backoff_until is not None and now < self.backoff_until,
                "backoff_until": self.backoff_until.isoformat() if self.backoff_until else None,
                "consecutive_failures": self.consecutive_failures,
                "cache_size": len(self.response_cache),
                "quota_exhausted": self.daily_token_count >= self.max_tokens_per_day
            }

    def reset_rate_limits(self):
        with self._lock:
            self.request_timestamps = []
            self.backoff_until = None
            self.consecutive_failures = 0

    def generate(self, contents: List[Dict[str, Any]], temperature: float, max_output_tokens: int) -> Optional[str]:
        """
        Generate text for a list of ``{"role", "parts"}`` turns.
        Returns None whenever Gemini is unavailable so the caller can fall back.
        """
        if self.model is None:
            return None

        cache_key = self._get_cache_key(contents, temperature)
        # rough estimate: 1 token ~ 4 characters
        prompt_chars = sum(len(part) for turn in contents for part in turn["parts"])
        estimated_tokens = prompt_chars // 4 + max_output_tokens // 2

        with self._lock:
            cached_response = self._get_cached_response(cache_key)
            if cached_response:
                return cached_response

            if not self._check_rate_limit():
                return None

            self.request_timestamps.append(datetime.now())

            if self.daily_token_count + estimated_tokens >= self.max_tokens_per_day:
                logger.warning("Daily token limit would be exceeded, using fallback")
                return None

        try:
            response = self.model.generate_content(
                contents,
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                )
            )
            response_text = response.text
        except Exception as e:
            error_str = str(e)
            logger.error(f"Error generating response: {error_str}")
            if "quota" in error_str.lower() or "429" in error_str or "rate" in error_str.lower():
                with self._lock:
                    self._handle_rate_limit_error(e)
            return None

        with self._lock:
            self.daily_token_count += estimated_tokens
            self.consecutive_failures = 0
            self._cache_response(cache_key, response_text)
        logger.info(f"Gemini API success. Tokens used: ~{estimated_tokens}, Daily total: {self.daily_token_count}")
        return response_text

    async def generate_async(self, contents: List[Dict[str, Any]], temperature: float, max_output_tokens: int) -> Optional[str]:
        """Async version of generate"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.generate, contents, temperature, max_output_tokens)


class ResponseGenerator:
    """
    Produces the AI reply for one chat turn:
    ``generate_response(message, history, user_context) -> {content, type, suggestions, emotionalTone, therapeuticApproach}``.

    ``history`` holds the turns *before* the current message; the current
    message is sent separately as the final user turn.
    """

    def __init__(self, gemini_service: Optional[GeminiService] = None):
        self.gemini_service = gemini_service or GeminiService()

    async def generate_response(self, message: str, history: List[Dict[str, Any]],
                                user_context: Dict[str, Any]) -> Dict[str, Any]:
        relevance = is_mental_health_related(message)
        if not relevance["is_related"]:
            logger.info(f"Message flagged as off-topic: {relevance.get('reason')}")
            return {
                "content": OFF_TOPIC_REDIRECT,
                "type": "text",
                "suggestions": [],
                "emotionalTone": "neutral",
            }

        emotional_analysis = analyze_emotional_state(message)
        emotion = emotional_analysis["primaryEmotion"]

        crisis = safety_service.detect_crisis(message)
        if crisis["is_crisis"]:
            return self._crisis_response(crisis, emotion)

        recent = history[-settings.AI_CONTEXT_MESSAGES:]
        contents = self._build_contents(recent, message)
        logger.debug(f"Passing {len(recent)} previous messages + current message to Gemini")

        content = await self.gemini_service.generate_async(
            contents, settings.CHAT_TEMPERATURE, settings.MAX_OUTPUT_TOKENS
        )
        if content:
            content = content.strip()
        else:
            content = self._fallback_content(emotion, user_context, is_returning=len(history) > 2)

        return {
            "content": content,
            "type": "text",
            "suggestions": SUGGESTIONS.get(emotion, []) if self._wants_techniques(message, emotional_analysis) else [],
            "emotionalTone": emotion,
            "therapeuticApproach": APPROACHES.get(emotion),
        }

    async def generate_title(self, conversation_text: str) -> Optional[str]:
        """3-6 word title for a conversation, or None when Gemini is unavailable."""
        prompt = (
            "Generate a very brief, concise title (3-6 words maximum) for this mental health conversation. "
            "The title should capture the main topic or concern. Only respond with the title, nothing else.\n\n"
            f"Conversation: {conversation_text[:500]}"
        )
        title = await self.gemini_service.generate_async(
            [{"role": "user", "parts": [prompt]}], settings.CHAT_TEMPERATURE, 20
        )
        return title.strip().strip('"') if title else None

    @staticmethod
    def _build_contents(history: List[Dict[str, Any]], message: str) -> List[Dict[str, Any]]:
        contents = []
        for msg in history:
            if msg.get("sender") == "user":
                contents.append({"role": "user", "parts": [msg.get("content", "")]})
            elif msg.get("sender") == "ai":
                contents.append({"role": "model", "parts": [msg.get("content", "")]})
        contents.append({"role": "user", "parts": [message]})
        return contents

    @staticmethod
    def _wants_techniques(message: str, emotional_analysis: Dict[str, Any]) -> bool:
        text = message.lower()
        requests = [
            "how do i", "what can i do", "help me", "technique", "strategy", "tip",
            "advice", "suggest", "recommend", "exercise", "practice", "method",
            "coping", "deal with", "manage", "handle", "overcome",
        ]
        if any(trigger in text for trigger in requests):
            return True
        if emotional_analysis["intensity"] > 7:
            return True
        return "?" in text and ("what" in text or "how" in text)

    @staticmethod
    def _fallback_content(emotion: str, user_context: Dict[str, Any], is_returning: bool) -> str:
        session_count = user_context.get("sessionCount", 0) or 0
        if is_returning and session_count > 10:
            greeting = "I'm glad you keep coming back to our conversations. You've shown such courage in this journey. "
        elif is_returning:
            greeting = "I remember our previous talks, and I'm here to continue supporting you. "
        else:
            greeting = "Thank you for reaching out to me today. I'm here to listen and support you. "

        responses = {
            "anxiety": "I can sense some worry in what you're sharing. Let's slow down together: breathe in for 4, hold for 4, and out for 4.",
            "depression": "It sounds like you're going through a difficult time. Your willingness to talk about it shows real self-awareness.",
            "stress": "You're managing a lot right now. It's important to acknowledge how hard you're working.",
            "overwhelm": "Feeling overwhelmed is your mind's way of saying it needs support. Let's take this one small piece at a time.",
            "loneliness": "Feeling alone is really hard. I'm here with you, and reaching out was a good step.",
            "anger": "Your frustration makes sense. Anger often tells us something important about our boundaries.",
            "confidence": "I can hear some positive energy in what you're sharing. That's wonderful to see.",
            "hope": "It's good to hear some hope in your words. Let's build on that.",
        }
        core = responses.get(emotion, "Could you tell me more about what's on your mind?")
        return greeting + core

    @staticmethod
    def _crisis_response(crisis: Dict[str, Any], emotion: str) -> Dict[str, Any]:
        if crisis["severity"] == "high":
            content = """I'm really concerned about what you're telling me. Your life has value, and there are people who care about you and want to help. Please reach out right now:

- **KIRAN Mental Health Helpline:** 1800-599-0019 (24/7)
- **Tele-MANAS:** 14416
- **Emergency Services:** 112

You don't have to face this alone."""
        else:
            content = """I can hear that you're really struggling right now, and I'm worried about you. These feelings are valid, and it's important that you get support.

Please consider reaching out to a trusted friend, a counselor, or the **KIRAN Helpline: 1800-599-0019**. You deserve support and care."""

        return {
            "content": content,
            "type": "crisis",
            "suggestions": ["Call a helpline now", "Talk to someone you trust", "Book a session with a counselor"],
            "emotionalTone": emotion,
            "therapeuticApproach": "crisis_support",
        }


# Create service instances
response_generator = ResponseGenerator()


def get_response_generator() -> ResponseGenerator:
    """FastAPI dependency for the AI response generator."""
    return response_generator
