from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from kapul.config import ProxyConfig
from kapul.tutor import fallback
from kapul.tutor.client import AIRequestError, ProxyClient

log = logging.getLogger(__name__)

UNCONFIGURED = {"configured": False, "model": "unknown"}

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

EXPLAIN_PROMPT = """You are an expert secondary school tutor specializing in Mathematics and Science.
You help students understand topics in:
- Mathematics (algebra, geometry, trigonometry, calculus, statistics, number theory)
- Physics (mechanics, electricity, magnetism, waves, thermodynamics, optics)
- Chemistry (atomic structure, bonding, reactions, organic chemistry, stoichiometry)
- Biology (cell biology, genetics, ecology, human anatomy, evolution, microbiology)

Provide clear, concise explanations that:
- Use simple language appropriate for secondary school students (grades 7-12)
- Introduce technical terms with clear definitions
- Include helpful analogies, diagrams described in text, or real-world examples
- Show relevant formulas or equations when applicable
- Are educational and encouraging
Keep responses under 150 words."""

SOLVE_PROMPT = """You are an expert secondary school tutor specializing in solving Mathematics and Science problems.
You help students with:
- Mathematical problems (algebra, equations, geometry, trigonometry, calculus, statistics)
- Physics problems (motion, forces, energy, circuits, waves)
- Chemistry problems (balancing equations, stoichiometry, molecular structure, reactions)
- Biology questions (genetics problems, ecology analysis, anatomy, cell processes)

Provide step-by-step solutions that:
- Identify the type of problem and relevant concepts
- List known values, unknowns, and relevant formulas
- Show each calculation or reasoning step clearly
- Include units and proper notation
- Verify the answer makes sense (check units, magnitude, direction)
- Highlight common mistakes students should avoid
Use numbered steps for clarity. Write formulas and equations clearly."""

QUIZ_PROMPT = """You are an expert secondary school teacher creating quiz questions for Mathematics and Science.
Generate exactly {count} questions based on the provided content.
Focus on testing understanding of mathematical concepts, scientific principles, formulas, and problem-solving skills.
Include numerical problems where appropriate.
Return ONLY a valid JSON array with this exact format:
[{{"q": "question text", "a": "answer text"}}]
No other text before or after the JSON."""

FLASHCARD_PROMPT = """You are an expert secondary school teacher creating flashcards for Mathematics and Science study.
Generate exactly {count} flashcards based on the provided content.
Focus on key formulas, definitions, scientific laws, and important concepts.
Include units and proper notation where relevant.
Return ONLY a valid JSON array with this exact format:
[{{"front": "question or term", "back": "answer or definition"}}]
No other text before or after the JSON."""

SUMMARY_PROMPT = """You are an expert secondary school teacher summarizing Mathematics and Science content.
Summarize the key points in 2-3 bullet points.
Focus on the most important formulas, scientific principles, definitions, and concepts.
Use proper notation and include units where applicable."""


def extract_json_list(response: str, keys: tuple[str, str]) -> Optional[list[dict[str, str]]]:
    """Pull the ``[...]`` span out of a model reply and check its shape.

    Returns None when there is no array, it is not valid JSON, or any item
    lacks one of ``keys`` as a string.
    """
    match = _JSON_ARRAY.search(response)
    if not match:
        return None
    try:
        items = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(items, list):
        return None
    result = []
    for item in items:
        if not isinstance(item, dict):
            return None
        if not all(isinstance(item.get(k), str) for k in keys):
            return None
        result.append({k: item[k] for k in keys})
    return result


class TutorEngine:
    """Study assistant backed by the AI proxy, with offline answers.

    Every public method returns something usable: when the proxy is not
    configured, unreachable, or replies with garbage, the deterministic
    fallback from :mod:`kapul.tutor.fallback` is served instead.
    """

    def __init__(self, config: ProxyConfig, client: Optional[ProxyClient] = None) -> None:
        self._config = config
        self._client = client or ProxyClient(config)
        self._status: Optional[dict[str, Any]] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._status and self._status.get("configured") is True)

    @property
    def status_label(self) -> str:
        if self.is_configured:
            return f"AI online ({self._status.get('model', 'unknown')})"
        return "Offline tutor"

    async def check_status(self) -> dict[str, Any]:
        if self._status is not None:
            return self._status
        try:
            data = await self._client.status()
            self._status = {
                "configured": data.get("configured") is True,
                "model": str(data.get("model") or "unknown"),
            }
        except AIRequestError as e:
            log.warning("AI status check failed: %s", e)
            self._status = dict(UNCONFIGURED)
        return self._status

    async def _ask(self, user_message: str, system: str) -> Optional[str]:
        """One completion round-trip, or None when the offline path applies."""
        await self.check_status()
        if not self.is_configured:
            return None
        try:
            return await self._client.complete(
                [{"role": "user", "content": user_message}], system
            )
        except AIRequestError as e:
            log.warning("AI request failed, using offline answer: %s", e)
            return None

    async def explain(self, text: str, context: str = "") -> str:
        if context:
            message = f'Context: {context}\n\nPlease explain: "{text}"'
        else:
            message = f'Please explain this math or science concept: "{text}"'
        answer = await self._ask(message, EXPLAIN_PROMPT)
        return answer if answer is not None else fallback.explanation(text)

    async def solve(self, text: str, context: str = "") -> str:
        if context:
            message = f'Context: {context}\n\nPlease solve this step by step: "{text}"'
        else:
            message = f'Please solve this math or science problem step by step: "{text}"'
        answer = await self._ask(message, SOLVE_PROMPT)
        return answer if answer is not None else fallback.solution(text)

    async def generate_flashcards(self, text: str, count: int = 3) -> list[dict[str, str]]:
        answer = await self._ask(
            f"Create {count} flashcards from this content:\n\n{text}",
            FLASHCARD_PROMPT.format(count=count),
        )
        if answer is not None:
            cards = extract_json_list(answer, ("front", "back"))
            if cards:
                return cards
            log.warning("Flashcard reply was not a JSON card list")
        return fallback.flashcards(text)

    async def generate_quiz(self, text: str, count: int = 3) -> list[dict[str, str]]:
        answer = await self._ask(
            f"Create {count} quiz questions from this content:\n\n{text}",
            QUIZ_PROMPT.format(count=count),
        )
        if answer is not None:
            questions = extract_json_list(answer, ("q", "a"))
            if questions:
                return questions
            log.warning("Quiz reply was not a JSON question list")
        return fallback.quiz(text)

    async def summarize(self, text: str) -> str:
        answer = await self._ask(f"Summarize this content:\n\n{text}", SUMMARY_PROMPT)
        return answer if answer is not None else fallback.summary(text)

    async def close(self) -> None:
        await self._client.close()
