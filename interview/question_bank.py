"""Fixed question set used whenever no provider can supply one."""
from __future__ import annotations

from typing import List, Tuple

from .models import Question, time_limit_for

DEFAULT_QUESTIONS: Tuple[Tuple[str, str], ...] = (
    ("What is the difference between let, const, and var in JavaScript?", "Easy"),
    ("Explain how React's virtual DOM works and why it's beneficial.", "Easy"),
    ("Describe the concept of closures in JavaScript with an example.", "Medium"),
    ("How would you implement a debounce function in JavaScript?", "Medium"),
    ("Explain the concept of server-side rendering in React and its advantages.", "Hard"),
    ("Design a scalable state management solution for a complex React application.", "Hard"),
)


def default_question_set() -> List[Question]:
    """Return the six bank questions in order; identical on every call."""

    return [
        Question(id=f"default-{index}", text=text, difficulty=difficulty, time_limit=time_limit_for(difficulty))
        for index, (text, difficulty) in enumerate(DEFAULT_QUESTIONS)
    ]


__all__ = ["DEFAULT_QUESTIONS", "default_question_set"]
