"""Language model adapters: query interpretation and verdict narration."""

import json
import re
from typing import Any, Optional, Protocol

import pydantic
import structlog
from google import genai
from google.genai import types

from financeos.config import get_settings
from financeos.domain.errors import ValidationError
from financeos.simulator.errors import ParseError
from financeos.simulator.models import ImpactMetrics, Scenario, TimelinePoint, Verdict
from financeos.simulator.timeline import round_half_up

logger = structlog.get_logger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")

SCENARIO_PROMPT = """SYSTEM: You are a JSON generator. Your entire response must be ONLY a valid JSON object. Do not include any text before or after the JSON. Do not use markdown. Do not explain.

USER QUERY: "{query}"

TASK: Convert this into a financial scenario JSON object with these exact fields:

REQUIRED FORMAT (return THIS structure with appropriate values):
{{"type":"hire","startMonthsAgo":3,"monthlyCost":-3500,"monthlyRevenue":0,"oneTimeCost":-1200,"growthFactor":0.15,"probability":0.80,"description":"Brief description"}}

FIELD RULES:
- type: MUST be one of these exact strings: "hire", "fire", "price_increase", "price_decrease", "new_client", "lose_client", "investment", "expense"
- startMonthsAgo: integer from 0 to {max_months_ago}
- monthlyCost: negative number for costs (e.g., -3500 for $3500/month cost)
- monthlyRevenue: positive number for income (e.g., 5000 for $5000/month)
- oneTimeCost: negative for one-time expenses (e.g., -1200)
- growthFactor: decimal from 0.0 to 1.0 (e.g., 0.15 = 15% growth)
- probability: decimal from 0.0 to 1.0 (e.g., 0.80 = 80% confidence)
- description: short text (under 100 chars)

EXAMPLES:
Query: "What if I hired a sales manager 3 months ago?"
Response: {{"type":"hire","startMonthsAgo":3,"monthlyCost":-3500,"monthlyRevenue":0,"oneTimeCost":-1200,"growthFactor":0.15,"probability":0.80,"description":"Hired sales manager with productivity ramp"}}

Query: "What if we raised prices by 15% 2 months ago?"
Response: {{"type":"price_increase","startMonthsAgo":2,"monthlyCost":0,"monthlyRevenue":0,"oneTimeCost":0,"growthFactor":0.15,"probability":0.90,"description":"15% price increase with retention risk"}}

Query: "What if we landed that big client 4 months ago?"
Response: {{"type":"new_client","startMonthsAgo":4,"monthlyCost":0,"monthlyRevenue":5000,"oneTimeCost":0,"growthFactor":0.10,"probability":0.85,"description":"Major new client with growth potential"}}

YOUR TURN - Respond with ONLY the JSON object for: "{query}"
"""

VERDICT_PROMPT = """SYSTEM: You are a JSON generator. Your entire response must be ONLY a valid JSON object. Do not include any text before or after the JSON. Do not use markdown. Do not explain.

FINANCIAL ANALYSIS REQUEST:
Question: "{query}"
Scenario: {description}
Financial Impact: {impact_amount} ({impact_percent}%)
Current Balance: {real_balance}
Simulated Balance: {simulated_balance}

DATA SUMMARY:
Reality Revenue Trend: {reality_trend}
Simulation Revenue Trend: {simulation_trend}
Monthly Impact: {monthly_impact}

REQUIRED JSON FORMAT (return exactly this structure):
{{"analysis":"2-3 sentence summary with specific numbers","reasoning":["Factor 1 with data","Factor 2 with data","Factor 3 with data"],"recommendation":"Clear actionable advice","confidence":0.85}}

JSON RULES:
1. All property names in double quotes
2. All string values in double quotes
3. No line breaks inside strings (use space instead)
4. Escape internal quotes with backslash
5. confidence must be number between 0.0 and 1.0
6. reasoning must be array of 3-5 strings

YOUR TURN - Analyze the data above and respond with ONLY the JSON object:
"""


def build_scenario_prompt(query: str, max_months_ago: int = 5) -> str:
    return SCENARIO_PROMPT.format(query=query, max_months_ago=max_months_ago)


def _thousands(value: float) -> str:
    sign = "+" if value >= 0 else "-"
    return f"{sign}${abs(round_half_up(value / 1000))}k"


def build_verdict_prompt(
    query: str,
    scenario: Scenario,
    reality: list[TimelinePoint],
    simulation: list[TimelinePoint],
    impact: ImpactMetrics,
) -> str:
    return VERDICT_PROMPT.format(
        query=query,
        description=scenario.description,
        impact_amount=f"${impact.amount:,.0f}",
        impact_percent=impact.percent,
        real_balance=f"${reality[-1].balance:,.0f}",
        simulated_balance=f"${simulation[-1].balance:,.0f}",
        reality_trend=", ".join(f"${round_half_up(p.revenue / 1000)}k" for p in reality),
        simulation_trend=", ".join(f"${round_half_up(p.revenue / 1000)}k" for p in simulation),
        monthly_impact=", ".join(_thousands(m.difference) for m in impact.breakdown_by_month),
    )


def extract_json_object(text: str, stage: str = "parse") -> str:
    """Strip markdown fences and surrounding prose from a model response.

    Raises:
        ParseError: If the response holds no JSON object
    """
    cleaned = _FENCE_END.sub("", _FENCE_START.sub("", text.strip()))
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end < start:
        raise ParseError("Model response contains no JSON object", stage=stage)
    return cleaned[start : end + 1]


def _describe(error: pydantic.ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'value'}: {err['msg']}" for err in error.errors()
    )


def parse_scenario_response(text: str) -> Scenario:
    """Validate a model response as a Scenario without coercing types.

    Raises:
        ParseError: On malformed JSON, unknown scenario types, unexpected keys,
            wrong value types or out-of-range values
    """
    payload = extract_json_object(text)
    try:
        return Scenario.model_validate_json(payload, strict=True)
    except pydantic.ValidationError as e:
        raise ParseError(f"Invalid scenario: {_describe(e)}") from e


def parse_verdict_response(text: str) -> Verdict:
    """Validate a model response as a Verdict.

    A single reasoning string is accepted and wrapped in a list.

    Raises:
        ParseError: If the response is not a valid verdict
    """
    payload = extract_json_object(text, stage="verdict")
    try:
        data: Any = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid verdict JSON: {e.msg}", stage="verdict") from e
    if isinstance(data, dict) and isinstance(data.get("reasoning"), str):
        data["reasoning"] = [data["reasoning"]]
    try:
        return Verdict.model_validate(data)
    except pydantic.ValidationError as e:
        raise ParseError(f"Invalid verdict: {_describe(e)}", stage="verdict") from e


class ScenarioInterpreter(Protocol):
    """Turns a natural-language question into a Scenario."""

    async def interpret(self, query: str) -> Scenario: ...


class _GeminiModel:
    """Shared google-genai plumbing for the simulator.

    The client is created on first use, so a pipeline can be built (to read
    history, for instance) without an API key.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        settings = get_settings()
        if api_key is None and settings.google_api_key is not None:
            api_key = settings.google_api_key.get_secret_value()

        self._api_key = api_key
        self._client = client
        self._model_name = model or settings.gemini_model
        # Low temperature keeps financial answers consistent between runs
        self._config = types.GenerateContentConfig(
            temperature=0.2,
            top_k=40,
            top_p=0.95,
            max_output_tokens=2048,
        )
        self._logger = logger.bind(client="gemini", model=self._model_name)

    @property
    def client(self) -> genai.Client:
        """Return the Gemini client.

        Raises:
            ValidationError: If no client was given and GOOGLE_API_KEY is not set
        """
        if self._client is None:
            if not self._api_key:
                raise ValidationError("GOOGLE_API_KEY is required to run simulations")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def _generate(self, prompt: str, stage: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self._model_name,
            contents=prompt,
            config=self._config,
        )
        text = response.text
        if not text:
            raise ParseError("Empty response from model", stage=stage)
        self._logger.debug("response_generated", stage=stage, length=len(text))
        return text


class GeminiScenarioInterpreter(_GeminiModel):
    """ScenarioInterpreter backed by Gemini."""

    def __init__(self, *args, max_months_ago: int = 5, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_months_ago = max_months_ago

    async def interpret(self, query: str) -> Scenario:
        text = await self._generate(build_scenario_prompt(query, self.max_months_ago), stage="parse")
        scenario = parse_scenario_response(text)
        self._logger.info("scenario_parsed", scenario_type=scenario.type.value)
        return scenario


class GeminiNarrator(_GeminiModel):
    """VerdictNarrator backed by Gemini."""

    async def narrate(
        self,
        query: str,
        scenario: Scenario,
        reality: list[TimelinePoint],
        simulation: list[TimelinePoint],
        impact: ImpactMetrics,
    ) -> Verdict:
        prompt = build_verdict_prompt(query, scenario, reality, simulation, impact)
        verdict = parse_verdict_response(await self._generate(prompt, stage="verdict"))
        self._logger.info("verdict_generated", confidence=verdict.confidence)
        return verdict
