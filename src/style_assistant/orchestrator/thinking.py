"""Thinking-step transitions for a turn.

``reveal_transitions`` is a lazy generator: each item is the full step list
after one more caption is revealed.  Calling it again restarts the sequence.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from style_assistant.models import ThinkingStatus, ThinkingStep


def reveal_transitions(captions: Iterable[str]) -> Iterator[list[ThinkingStep]]:
    """Yield the step list after each reveal.

    The newest step is ``thinking``; every earlier one is ``complete``.
    """
    revealed: list[ThinkingStep] = []
    for index, caption in enumerate(captions):
        revealed = [step.model_copy(update={"status": ThinkingStatus.COMPLETE}) for step in revealed]
        revealed.append(ThinkingStep(id=f"step-{index}", step=caption, status=ThinkingStatus.THINKING))
        yield list(revealed)


def settle(steps: Iterable[ThinkingStep]) -> list[ThinkingStep]:
    """Return *steps* with every status flipped to ``complete``."""
    return [step.model_copy(update={"status": ThinkingStatus.COMPLETE}) for step in steps]
