"""
Checklist generation from inspection type and site conditions.
"""
from typing import Any, Dict, List, Mapping, Optional

from ..schemas.inspections import ChecklistItem
from ..schemas.qc import ChecklistTemplateItem


STANDARD_ITEMS: Dict[str, List[ChecklistTemplateItem]] = {
    "foundation": [
        ChecklistTemplateItem(
            id="f1",
            text="Verify foundation depth meets specifications",
            category="measurements",
            references=["ACI 318-19"],
        ),
        ChecklistTemplateItem(
            id="f2",
            text="Confirm rebar spacing and cover",
            category="reinforcement",
            references=["ACI 318-19"],
        ),
    ],
    "concrete": [
        ChecklistTemplateItem(
            id="c1",
            text="Record slump test results",
            category="testing",
            references=["ASTM C143"],
        ),
        ChecklistTemplateItem(
            id="c2",
            text="Cast cylinders for compressive strength",
            category="testing",
            references=["ASTM C31"],
        ),
    ],
    "welding": [
        ChecklistTemplateItem(
            id="w1",
            text="Verify welder qualification for the procedure",
            category="qualification",
            references=["AWS D1.1"],
        ),
        ChecklistTemplateItem(
            id="w2",
            text="Visually inspect weld profile and size",
            category="visual",
            references=["AWS D1.1"],
        ),
    ],
}

COLD_WEATHER_LIMIT_F = 40
FALL_PROTECTION_HEIGHT_FT = 6


def contextual_items(inspection_type: str, conditions: Mapping[str, Any]) -> List[ChecklistTemplateItem]:
    items: List[ChecklistTemplateItem] = []

    temperature = conditions.get("temperature")
    if temperature is not None and temperature < COLD_WEATHER_LIMIT_F:
        if inspection_type in ("concrete", "foundation"):
            items.append(
                ChecklistTemplateItem(
                    id="ctx-cold-concrete",
                    text="Verify cold weather protection for curing concrete",
                    category="environment",
                    references=["ACI 306R"],
                )
            )
        if inspection_type == "welding":
            items.append(
                ChecklistTemplateItem(
                    id="ctx-preheat",
                    text="Confirm preheat temperature before welding",
                    category="environment",
                    references=["AWS D1.1"],
                )
            )

    if conditions.get("weather") in ("rain", "snow"):
        items.append(
            ChecklistTemplateItem(
                id="ctx-precipitation",
                text="Check work area protection from precipitation",
                category="environment",
            )
        )

    height = conditions.get("height")
    if height is not None and height > FALL_PROTECTION_HEIGHT_FT:
        items.append(
            ChecklistTemplateItem(
                id="ctx-fall-protection",
                text="Verify fall protection is in place",
                category="safety",
                references=["OSHA 1926.501"],
            )
        )

    if conditions.get("third_party_required"):
        items.append(
            ChecklistTemplateItem(
                id="ctx-third-party",
                text="Notify third-party inspector and record attendance",
                category="coordination",
                required=False,
            )
        )
    return items


def generate_checklist(
    inspection_type: str,
    conditions: Optional[Mapping[str, Any]] = None,
) -> List[ChecklistTemplateItem]:
    """Standard items for the inspection type followed by items triggered by conditions."""
    base = [item.model_copy() for item in STANDARD_ITEMS.get(inspection_type, [])]
    return base + contextual_items(inspection_type, conditions or {})


def to_checklist_items(templates: List[ChecklistTemplateItem]) -> List[ChecklistItem]:
    return [
        ChecklistItem(
            description=t.text,
            required=t.required,
            reference=", ".join(t.references) or None,
        )
        for t in templates
    ]
