"""Custom JSON encoding utilities"""
import json
from datetime import date, datetime

from pydantic import BaseModel

class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder for persisted profile values"""
    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode='json', by_alias=True)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)

def json_dumps(obj):
    """Helper function to dump JSON with datetime and model handling"""
    return json.dumps(obj, cls=DateTimeEncoder)
