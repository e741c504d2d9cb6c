from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from walletgraph.core.models import EntityAnnotation


class EntityLookupPort(ABC):
    """
    One step of the entity cascade: address in, annotation or None out.

    `None` means "no match here, try the next source". Raising is allowed;
    the resolver treats it like `None`.
    """

    name: str = "lookup"

    @abstractmethod
    def resolve(self, address: str) -> Optional[EntityAnnotation]:
        raise NotImplementedError
