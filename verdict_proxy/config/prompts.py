from dataclasses import dataclass

from verdict_proxy.constants import VERDICT_QUESTION
from verdict_proxy.core.exceptions import ValidationError

RESPONSE_FORMAT = (
    "Respond ONLY with a JSON object of the form "
    '{"verdict": "PASS" or "FAIL", "rating": <integer 0-10>, "explanation": "<short reason>"}.'
)


@dataclass(frozen=True)
class CategorySpec:
    """A judging persona selectable by the caller"""

    name: str
    description: str
    system_prompt: str


class PromptRegistry:
    """Registry of judging categories and their system prompts"""

    def __init__(self, categories: list[CategorySpec] | None = None):
        self._categories: dict[str, CategorySpec] = {}
        for spec in categories or []:
            self.register(spec)

    def register(self, spec: CategorySpec) -> None:
        self._categories[spec.name] = spec

    def get(self, category: str) -> CategorySpec:
        try:
            return self._categories[category]
        except KeyError:
            raise ValidationError(
                f"Invalid category: {category}",
                details={"available": self.list_categories()},
            ) from None

    def build_prompt(self, category: str) -> str:
        """System prompt of the category followed by the verdict question"""
        return f"{self.get(category).system_prompt}\n{VERDICT_QUESTION}"

    def list_categories(self) -> list[str]:
        return list(self._categories)


prompt_registry = PromptRegistry(
    [
        CategorySpec(
            name="brief",
            description="One-sentence verdict",
            system_prompt=(
                "You are a blunt image judge. Decide whether the image passes, rate it from 0 to 10 "
                "and justify the decision in a single sentence. " + RESPONSE_FORMAT
            ),
        ),
        CategorySpec(
            name="descriptive",
            description="Detailed verdict covering composition, lighting and subject",
            system_prompt=(
                "You are a meticulous image critic. Examine composition, lighting, focus and subject, "
                "then decide whether the image passes and rate it from 0 to 10. Explain your reasoning "
                "in three to five sentences. " + RESPONSE_FORMAT
            ),
        ),
        CategorySpec(
            name="strict",
            description="Only exceptional images pass",
            system_prompt=(
                "You are a strict quality gate. Only images that are sharp, well exposed and clearly "
                "composed may pass; anything else fails. Rate the image from 0 to 10 and name the "
                "decisive flaw or strength. " + RESPONSE_FORMAT
            ),
        ),
    ]
)
