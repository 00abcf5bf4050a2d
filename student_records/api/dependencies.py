from fastapi import Depends, Request

from student_records.ai.agent import AgentService
from student_records.ai.client import OllamaClient


def get_generation_client(request: Request) -> OllamaClient:
    return request.app.state.generation_client


def get_agent_service(client: OllamaClient = Depends(get_generation_client)) -> AgentService:
    return AgentService(client)
