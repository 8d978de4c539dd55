"""Generación de datos de evento con OpenAI a partir del título"""
import json
import logging
from typing import Dict, List, Optional, Tuple

from openai import AsyncOpenAI
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from shared.database.models import Category, Venue

logger = logging.getLogger(__name__)

MAX_CHOICES = 30
MIN_TICKETS_COUNT = 50

PROMPT_TEMPLATE = """
You are helping to create an event.
Event title: "{title}".

Here is the list of available categories as JSON (id, name only, max 30):
{categories}

Here is the list of available venues as JSON (id, title only, max 30):
{venues}

1. Write a short, detailed, marketing-friendly description for this event.
2. Choose the single most appropriate category from the provided list (by id).
3. Choose venue for this event from the provided list (by id).
4. Choose a reasonable ticketsCount depend on venue capacity and event title.

Respond with a JSON object ONLY, ready to be parsed directly with a JSON parser.
Do NOT include markdown, backticks, comments, or any explanatory text.

The JSON object MUST have exactly the following keys:
- description: string
- categoryId: string (one of the provided category ids)
- venueId: string (one of the provided venue ids)
- ticketsCount: number
"""


class AIGenerationError(Exception):
    """La respuesta del modelo no se pudo usar"""


class AIService:
    """Servicio de sugerencias con OpenAI (Responses API)"""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                logger.warning("OPENAI_API_KEY no configurado")
            self._client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    async def _request_completion(self, prompt: str) -> str:
        result = await self.client.responses.create(model=settings.OPENAI_MODEL, input=prompt)
        output = getattr(result, "output_text", "") or ""
        return str(output).strip()

    @staticmethod
    async def _load_choices(db: AsyncSession) -> Tuple[List[Dict], List[Dict]]:
        # Sin catálogos el modelo igual puede sugerir descripción
        try:
            categories_result = await db.execute(select(Category.id, Category.name).limit(MAX_CHOICES))
            venues_result = await db.execute(select(Venue.id, Venue.title).limit(MAX_CHOICES))
        except Exception as e:
            logger.error(f"Error cargando categorías/venues para IA: {e}", exc_info=True)
            return [], []

        categories = [{"id": row.id, "name": row.name} for row in categories_result.all()]
        venues = [{"id": row.id, "title": row.title} for row in venues_result.all()]
        logger.info(f"generate-event-data: {len(categories)} categorías, {len(venues)} venues")
        return categories, venues

    @staticmethod
    def parse_completion(raw_output: str) -> Dict:
        """
        Validar el JSON devuelto por el modelo

        Raises:
            AIGenerationError: JSON inválido o campos faltantes
        """
        try:
            parsed = json.loads(raw_output)
        except (TypeError, ValueError):
            logger.error(f"No se pudo parsear la respuesta de IA: {raw_output}")
            raise AIGenerationError("Failed to parse AI JSON response")

        if not isinstance(parsed, dict):
            parsed = {}

        description = str(parsed.get("description") or "")
        category_id = parsed.get("categoryId") if isinstance(parsed.get("categoryId"), str) else ""
        venue_id = parsed.get("venueId") if isinstance(parsed.get("venueId"), str) else ""

        tickets_count = parsed.get("ticketsCount")
        if isinstance(tickets_count, bool) or not isinstance(tickets_count, (int, float)):
            tickets_count = None
        elif tickets_count < MIN_TICKETS_COUNT:
            tickets_count = None

        if not description or not category_id or not venue_id or tickets_count is None:
            raise AIGenerationError("AI response missing required fields")

        return {
            "description": description,
            "category_id": category_id,
            "venue_id": venue_id,
            "tickets_count": tickets_count,
        }

    async def generate_event_data(self, db: AsyncSession, title: str) -> Dict:
        """Sugerir descripción, categoría, venue y aforo para un título"""
        categories, venues = await self._load_choices(db)

        prompt = PROMPT_TEMPLATE.format(
            title=title,
            categories=json.dumps(categories),
            venues=json.dumps(venues),
        )
        raw_output = await self._request_completion(prompt)
        if not raw_output:
            raise AIGenerationError("AI returned empty description")

        data = self.parse_completion(raw_output)

        category_names = {c["id"]: c["name"] for c in categories}
        venue_titles = {v["id"]: v["title"] for v in venues}
        return {
            "description": data["description"],
            "category": category_names.get(data["category_id"]) or "",
            "venue": venue_titles.get(data["venue_id"]) or "",
            "categoryId": data["category_id"],
            "venueId": data["venue_id"],
            "ticketsCount": data["tickets_count"],
        }
