from typing import Any, Dict, List

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from attendance_service.core.errors import ValidationError


class DocumentModel(BaseModel):
    """Mongo Document 응답용 베이스."""

    @classmethod
    def from_document(cls, raw: Dict[str, Any]):
        """
        MongoDB Document(dict) -> Pydantic 모델로 변환.
        _id -> id, ObjectId 값은 문자열로.
        """
        data = {
            key: str(value) if isinstance(value, ObjectId) else value
            for key, value in raw.items()
        }
        if "_id" in data:
            data["id"] = data.pop("_id")
        return cls(**data)


def field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(p) for p in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


def validate_model(model: type, data: Dict[str, Any]):
    """폼 입력처럼 FastAPI가 직접 검증하지 않는 값을 모델로 검증. 실패 시 400."""
    try:
        return model(**data)
    except PydanticValidationError as exc:
        raise ValidationError("Validation failed", errors=field_errors(exc))
