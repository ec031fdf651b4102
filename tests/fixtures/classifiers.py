"""
Scripted classification clients for orchestrator and session tests.
"""

from typing import Callable, Dict, List, Optional, Union

from comment_detox.classification.perspective_client import ClassificationClient
from comment_detox.errors import RateLimited
from comment_detox.models.audit import ClassificationScore


ScriptEntry = Union[ClassificationScore, Exception]

TOXIC_SCORE = ClassificationScore(toxicity=0.95, severe_toxicity=0.5, insult=0.7)
CLEAN_SCORE = ClassificationScore(toxicity=0.05, severe_toxicity=0.01, insult=0.02)


class ScriptedClient(ClassificationClient):
    """
    Returns CLEAN_SCORE unless the text has a scripted answer.

    A scripted list is consumed one entry per call, so
    ``{"x": [RateLimited(), TOXIC_SCORE]}`` rate-limits once and then scores.

    Args:
        script: text -> score, exception or list of either
        on_call: Invoked with the text before answering
    """

    def __init__(
        self,
        script: Optional[Dict[str, Union[ScriptEntry, List[ScriptEntry]]]] = None,
        on_call: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(call_delay=0)
        self.script = {
            text: list(answer) if isinstance(answer, list) else answer
            for text, answer in (script or {}).items()
        }
        self.on_call = on_call
        self.texts: List[str] = []
        self.closed = False

    def _analyze(self, text: str, credential: str) -> ClassificationScore:
        self.texts.append(text)
        if self.on_call is not None:
            self.on_call(text)

        answer = self.script.get(text, CLEAN_SCORE)
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def close(self) -> None:
        self.closed = True


def rate_limited(retry_after: Optional[float] = None) -> RateLimited:
    return RateLimited(retry_after=retry_after)
