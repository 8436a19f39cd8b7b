"""
Conversation Store Tests
"""

from legacy_ops.bot import ConversationStore, session_key


def test_session_key():
    assert session_key("U1", "C1") == "U1-C1"


def test_defaults_come_from_settings():
    store = ConversationStore()
    assert (store.capacity, store.max_turns) == (500, 20)


def test_append_returns_copy():
    store = ConversationStore(capacity=5, max_turns=5)

    history = store.append("a", "user", "hi")
    history.append({"role": "user", "content": "tampered"})

    assert store.history("a") == [{"role": "user", "content": "hi"}]


def test_history_trimmed_to_max_turns():
    store = ConversationStore(capacity=5, max_turns=3)
    for i in range(5):
        store.append("a", "user", f"m{i}")

    assert [turn["content"] for turn in store.history("a")] == ["m2", "m3", "m4"]


def test_least_recently_used_session_is_evicted():
    store = ConversationStore(capacity=2, max_turns=5)
    store.append("a", "user", "1")
    store.append("b", "user", "2")
    store.history("a")
    store.append("c", "user", "3")

    assert "a" in store
    assert "b" not in store
    assert len(store) == 2


def test_unknown_session_is_empty():
    assert ConversationStore().history("nobody") == []


def test_clear():
    store = ConversationStore()
    store.append("a", "user", "1")
    store.append("b", "user", "2")

    store.clear("a")
    assert len(store) == 1

    store.clear()
    assert len(store) == 0


def test_zero_max_turns_is_respected():
    store = ConversationStore(capacity=1, max_turns=0)

    assert store.max_turns == 0
    assert store.append("a", "user", "hi") == []
