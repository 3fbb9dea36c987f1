import logging

from app.agent.artifacts import CulturalInterpretation, InterpretationResult
from app.agent.base import BaseAgent
from app.agent.prompts.interpretation import INTERPRETATION_SYSTEM_PROMPT
from app.core.config import settings
from app.models import Observation, TreeCultural

logger = logging.getLogger(__name__)


def build_interpretation_prompt(
    *,
    reflection_text: str,
    tree: TreeCultural | None = None,
    observation: Observation | None = None,
) -> str:
    """Concatenate the stored tree, observation and reflection fields into a user prompt."""
    lines: list[str] = []
    if tree is not None:
        name = tree.common_name
        if tree.scientific_name:
            name = f"{name} ({tree.scientific_name})"
        lines.append(f"Tree: {name}")
        if tree.region:
            lines.append(f"Native region: {tree.region}")
        # Blobs are passed through verbatim, the model reads the JSON itself
        if tree.cultural_significance:
            lines.append(f"Cultural significance: {tree.cultural_significance}")
        if tree.traditional_uses:
            lines.append(f"Traditional uses: {tree.traditional_uses}")
    else:
        lines.append("Tree: species not identified")

    if observation is not None:
        if observation.location_name:
            lines.append(f"Observed at: {observation.location_name}")
        if observation.latitude is not None and observation.longitude is not None:
            lines.append(
                f"Coordinates: {observation.latitude:.5f}, {observation.longitude:.5f}"
            )

    lines.append("")
    lines.append("Visitor's reflection:")
    lines.append(reflection_text.strip())
    return "\n".join(lines)


class InterpretationAgent(BaseAgent[str, CulturalInterpretation]):
    """
    Agent that asks the generation endpoint for the cultural meaning of an
    observed tree, in response to the visitor's reflection.
    """

    async def run(self, input_data: str) -> CulturalInterpretation:
        interpretation = await self.llm.generate_structured(
            system_prompt=INTERPRETATION_SYSTEM_PROMPT,
            user_prompt=input_data,
            response_schema=CulturalInterpretation,
        )
        if not interpretation.summary.strip():
            raise ValueError("InterpretationAgent returned an empty summary.")
        return interpretation

    async def interpret(
        self,
        *,
        reflection_text: str,
        tree: TreeCultural | None = None,
        observation: Observation | None = None,
    ) -> InterpretationResult:
        """Generate narratable interpretation text, or the fallback text on any failure."""
        prompt = build_interpretation_prompt(
            reflection_text=reflection_text, tree=tree, observation=observation
        )
        try:
            interpretation = await self.run(prompt)
        except Exception as e:
            logger.warning("Cultural interpretation failed, using fallback text: %s", e)
            return InterpretationResult(
                text=settings.INTERPRETATION_FALLBACK_TEXT, status="fallback"
            )
        return InterpretationResult(text=interpretation.to_narration_text(), status="generated")


def get_interpretation_agent() -> InterpretationAgent:
    return InterpretationAgent()
