import json
import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from student_records.models.ai_interaction import AIInteraction

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(jsonable_encoder(value))


def create_ai_interaction(
    db: Session,
    user_id: int | None,
    query: str,
    response: Any,
    agent_type: str,
    context: Any = None,
) -> AIInteraction:
    interaction = AIInteraction(
        user_id=user_id,
        query=query,
        response=_as_text(response),
        agent_type=agent_type,
        context=_as_text(context) if context is not None else None,
    )
    db.add(interaction)
    db.commit()
    logger.debug("Logged %s interaction for user %s", agent_type, user_id)
    return interaction
