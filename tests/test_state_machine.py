import pytest

from app.services.errors import InvalidTransitionError
from app.services.state_machine import ALLOWED_TRANSITIONS, can_transition, ensure_transition, is_terminal
from app.utils.constants import STATES


def test_every_state_has_a_transition_entry():
    assert set(ALLOWED_TRANSITIONS) == STATES


@pytest.mark.parametrize(
    "current,target",
    [
        ("draft", "generated"),
        ("generated", "approved"),
        ("generated", "needs_improvement"),
        ("review", "approved"),
        ("needs_improvement", "review"),
        ("approved", "published"),
        ("published", "archived"),
    ],
)
def test_allowed_transitions(current, target):
    ensure_transition(current, target)
    assert can_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        ("review", "published"),
        ("draft", "published"),
        ("published", "review"),
        ("rejected", "approved"),
        ("archived", "published"),
    ],
)
def test_forbidden_transitions_raise(current, target):
    with pytest.raises(InvalidTransitionError) as exc:
        ensure_transition(current, target)
    assert f"{current} -> {target}" in str(exc.value)


def test_invalid_transition_is_a_value_error():
    with pytest.raises(ValueError):
        ensure_transition("rejected", "published")


def test_unknown_states_raise():
    with pytest.raises(ValueError, match="Unknown state"):
        ensure_transition("PENDING", "approved")
    with pytest.raises(ValueError, match="Unknown target state"):
        ensure_transition("review", "queued")


def test_terminal_states_have_no_exits():
    for status in ("rejected", "archived"):
        assert is_terminal(status)
        assert ALLOWED_TRANSITIONS[status] == []
    assert not is_terminal("published")
