"""
Conversation steps - the guided intake sequence, in order.
"""

from enum import Enum


class Step(str, Enum):
    ASK_IDENTITY = "ask_identity"
    ASK_DESCRIPTION = "ask_description"
    ASK_WEIGHT = "ask_weight"
    ASK_PACKING = "ask_packing"
    ASK_ADDRESSES = "ask_addresses"
    ASK_DATE = "ask_date"
    ASK_PERMITS = "ask_permits"
    ASK_EMAIL = "ask_email"
    SUMMARY_AND_QUOTE = "summary_and_quote"  # Terminal for the guided flow


STEP_ORDER: tuple[Step, ...] = tuple(Step)
INITIAL_STEP = Step.ASK_IDENTITY
TERMINAL_STEP = Step.SUMMARY_AND_QUOTE


def next_step(step: Step) -> Step:
    """Step that follows `step`; the terminal step maps to itself."""
    if step == TERMINAL_STEP:
        return step
    return STEP_ORDER[STEP_ORDER.index(step) + 1]
