from __future__ import annotations

from abc import ABC, abstractmethod


class ClassifierProvider(ABC):
    """
    Interface for the grouping/classification capability.

    IMPORTANT:
    - Providers return the raw response text; parsing and validation happen
      in `grouping.parse`, never inside a provider.
    - Transport failures raise ClassifierRequestError.
    """

    name: str

    @abstractmethod
    def complete(self, *, system_prompt: str, user_prompt: str) -> str:
        raise NotImplementedError
