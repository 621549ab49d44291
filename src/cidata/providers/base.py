"""Base provider interface."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List
from pydantic import BaseModel


class ProviderStatus(Enum):
    """Provider resource status."""
    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"
    ERROR = "error"


class BaseProvider(ABC):
    """Base provider interface for resources identified by a durable id."""

    @abstractmethod
    def create(self, spec: BaseModel) -> str:
        """Create the resource and return its id."""
        pass

    @abstractmethod
    def read(self, resource_id: str) -> BaseModel:
        """Re-derive the resource's fields from the backend."""
        pass

    @abstractmethod
    def delete(self, resource_id: str) -> None:
        """Remove the resource."""
        pass

    @abstractmethod
    def status(self, resource_id: str) -> ProviderStatus:
        """Check the current status of a resource."""
        pass

    @abstractmethod
    def requires_replacement(self, spec: BaseModel, state: BaseModel) -> List[str]:
        """Fields whose change forces the resource to be recreated."""
        pass
