from mentara.api.crud.conversation_crud import default_user_context
from mentara.api.services.ai_services import GeminiService, ResponseGenerator
from mentara.api.services.context_service import update_user_context
from mentara.api.services.emotion import analyze_emotional_state, is_mental_health_related

AI_REPLY = {"content": "ok", "emotionalTone": "anxiety", "therapeuticApproach": "cbt"}


def test_context_merge_extracts_concerns_moods_and_topics():
    context = update_user_context(default_user_context(), "I am very anxious about my exam and my parents", AI_REPLY)

    assert context["concerns"] == ["academic_pressure", "family_expectations"]
    assert context["moods"] == ["anxious_medium"]
    assert "anxious" in context["topics"]
    assert context["sessionCount"] == 1
    assert context["therapeuticProgress"]["cbt"]["sessions"] == 1
    assert context["preferredApproaches"] == ["cbt"]
    assert context["previousEmotions"][-1]["trigger"] == "academic_stress"


def test_context_merge_deduplicates_and_bounds_lists():
    context = default_user_context()
    for i in range(60):
        context = update_user_context(context, f"worried about exam number{i} tomorrow", AI_REPLY)

    assert context["concerns"].count("academic_pressure") == 1
    assert len(context["topics"]) == 20
    assert len(context["previousEmotions"]) == 50
    assert context["sessionCount"] == 60
    assert context["therapeuticProgress"]["cbt"]["sessions"] == 60


def test_context_merge_keeps_unknown_fields_and_tolerates_missing_ones():
    context = update_user_context({"favouriteColour": "blue"}, "please be honest with me", {"content": "ok"})

    assert context["favouriteColour"] == "blue"
    assert context["personality"] == "direct"
    assert context["sessionCount"] == 1
    assert context["therapeuticProgress"] == {}


def test_emotional_state_defaults_to_neutral():
    assert analyze_emotional_state("the train was on time")["primaryEmotion"] == "neutral"
    assert analyze_emotional_state("I feel so anxious")["primaryEmotion"] == "anxiety"


def test_topic_filter_lets_feelings_through_and_redirects_code_requests():
    assert is_mental_health_related("hi")["is_related"]
    assert is_mental_health_related("I feel lost lately")["is_related"]
    assert not is_mental_health_related("write python code for sorting")["is_related"]


def _offline_generator():
    service = GeminiService()
    service.model = None
    return ResponseGenerator(service)


async def test_fallback_response_without_gemini():
    response = await _offline_generator().generate_response(
        "I feel so anxious about exams, what can I do?", [], default_user_context()
    )

    assert response["content"]
    assert response["type"] == "text"
    assert response["emotionalTone"] == "anxiety"
    assert response["therapeuticApproach"] == "cbt"
    assert response["suggestions"]


async def test_crisis_message_returns_helplines():
    response = await _offline_generator().generate_response(
        "I want to end my life tonight", [], default_user_context()
    )

    assert response["type"] == "crisis"
    assert "1800-599-0019" in response["content"]


async def test_off_topic_message_is_redirected():
    response = await _offline_generator().generate_response(
        "write python code for sorting", [], default_user_context()
    )

    assert "mental wellness" in response["content"]
    assert response["suggestions"] == []


def test_contents_map_history_roles_and_end_with_current_message():
    history = [
        {"sender": "user", "content": "a"},
        {"sender": "ai", "content": "b"},
        {"sender": "system", "content": "ignored"},
    ]
    contents = ResponseGenerator._build_contents(history, "c")

    assert [turn["role"] for turn in contents] == ["user", "model", "user"]
    assert contents[-1]["parts"] == ["c"]


def test_api_status_without_key():
    status = _offline_generator().gemini_service.get_api_status()
    assert status["api_key_configured"] is False
    assert status["requests_this_minute"] == 0
