import logging

from app.core import prompt_manager
from app.core.errors import ServiceUnavailable, ValidationError
from app.services.ai_coach_service import TextProvider

logger = logging.getLogger(__name__)


class ChatbotService:
    """Questions libres posées au chatbot: texte en entrée, texte en sortie."""

    def __init__(self, provider: TextProvider):
        self.provider = provider

    def answer(self, message: str) -> str:
        question = message.strip()
        if not question:
            raise ValidationError("La question ne peut pas être vide.")
        if not self.provider.is_configured:
            raise ServiceUnavailable("Le service IA n'est pas configuré (clé API Google absente).")

        prompt = prompt_manager.get_prompt("chatbot.answer", question=question)
        response = self.provider.generate(prompt, json_mode=False).strip()
        logger.info("[chatbot] Réponse générée (%s caractères).", len(response))
        return response
