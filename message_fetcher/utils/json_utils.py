import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, (bytes, bytearray)):
            return obj.decode("utf-8")
        # Pydantic models
        elif hasattr(obj, "model_dump"):
            return obj.model_dump()
        return super().default(obj)


def dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with Decimal and datetime support."""
    return json.dumps(obj, cls=EnhancedJSONEncoder, **kwargs)


def loads(s: Union[str, bytes, bytearray], **kwargs) -> Any:
    """Standard JSON loads function."""
    return json.loads(s, **kwargs)


def serialize_value(value: Any) -> bytes:
    """Serializer for record values written to Kafka or a queue."""
    return dumps(value).encode("utf-8")


def deserialize_value(raw: Union[str, bytes, bytearray, None]) -> Any:
    """Deserializer for record values read from Kafka or a queue."""
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return loads(raw)
