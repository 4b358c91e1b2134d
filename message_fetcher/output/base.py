"""
Base producer sink interface.

Defines the abstract ProducerSink that concrete sinks implement, along with
the envelope model describing a produced record.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ProducedEnvelope(BaseModel):
    """A record handed to a sink: the partition key and the value."""

    topic: str = Field(description="Topic the record was produced on")
    key: Optional[str] = Field(default=None, description="Partition key, None for key-less records")
    value: Any = Field(description="Record value")
    produced_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the record was accepted"
    )


class ProducerSink(ABC):
    """
    Abstract base class for output sinks.

    A sink accepts (key, value, schema, topic) and resolves once the record
    was accepted, or raises ProduceError.
    """

    async def start(self) -> None:
        """Open connections. Default implementation does nothing."""

    @abstractmethod
    async def send(
        self,
        topic: str,
        key: Optional[str],
        value: Any,
        schema: Optional[Mapping] = None,
    ) -> ProducedEnvelope:
        """
        Write one record.

        Args:
            topic: Destination topic
            key: Partition key, None to let the sink pick a partition
            value: Record value
            schema: Schema descriptor of the value

        Returns:
            The envelope that was written

        Raises:
            ProduceError: If the record could not be written
        """

    async def stop(self) -> None:
        """Release connections. Default implementation does nothing."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
