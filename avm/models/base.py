from typing import Protocol

class CompletionModel(Protocol):
    async def complete(self, prompt: str) -> str:
        """
        Returns the model's free-text reply to a single user prompt.
        Raises UpstreamError when the provider is unusable.
        """
        ...
