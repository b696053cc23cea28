from .base import CompletionModel
from ..core.utils import fnv1a_32, seeded_rand

class MockModel(CompletionModel):
    """
    Deterministic placeholder model. Replies with a plausible AED figure
    seeded from the prompt, formatted the way chat models tend to answer.
    """
    async def complete(self, prompt: str) -> str:
        seed = fnv1a_32(prompt)
        value = int(350_000 + seeded_rand(seed, 1)[0] * 1_850_000)
        return f"{value:,}"
