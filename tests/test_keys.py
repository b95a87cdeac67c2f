import pytest

from mentara.core import keys


def test_keys_are_family_prefixed():
    assert keys.conversation_key("u1", "c1") == "conversation:u1:c1"
    assert keys.user_context_key("u1") == "user_context:u1"
    assert keys.session_key("session_1_abc") == "session:session_1_abc"


def test_user_prefix_does_not_match_user_context_keys():
    user_prefix = keys.prefix(keys.USER)
    assert not keys.user_context_key("u1").startswith(user_prefix)
    assert keys.user_key("u1").startswith(user_prefix)


@pytest.mark.parametrize("bad", ["a:b", ":", ""])
def test_rejects_separator_and_empty_components(bad):
    with pytest.raises(ValueError):
        keys.user_key(bad)


def test_rejects_separator_in_any_component():
    with pytest.raises(ValueError):
        keys.conversation_key("u1", "conv:1")
