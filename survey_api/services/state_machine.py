from survey_api.utils.constants import ACCESS_STATES

# approved and denied are terminal
ALLOWED_TRANSITIONS = {
    "pending": ("approved", "denied"),
    "approved": (),
    "denied": (),
}


def is_terminal(status: str) -> bool:
    return not ALLOWED_TRANSITIONS.get(status)


def ensure_transition(current: str, target: str) -> None:
    for state, label in ((current, "state"), (target, "target state")):
        if state not in ACCESS_STATES:
            raise ValueError(f"Unknown {label}: {state}")

    if target not in ALLOWED_TRANSITIONS[current]:
        raise ValueError(f"Invalid transition: {current} -> {target}")
