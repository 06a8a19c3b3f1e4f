import random

FALLBACK_RESPONSES: tuple[str, ...] = (
    "Sorry, I don't have the information to answer that.",
    "That's an interesting question!",
    "Let me look that up for you...",
    "Could you please provide more details?",
    "Thank you for your input!",
)


class FallbackReplyGenerator:
    """Filler replies that keep the conversation alive while the service is down.

    The echo suffix makes fallback replies easy to spot in logs and transcripts.
    """

    def __init__(self, rng: random.Random | None = None, responses: tuple[str, ...] = FALLBACK_RESPONSES):
        if not responses:
            raise ValueError("At least one fallback response is required")
        self._rng = rng or random.Random()
        self._responses = responses

    def generate(self, message: str) -> str:
        return f"{self._rng.choice(self._responses)} (Mock Response to: {message})"
