"""Plain-text rendering of treatment plans.

Produces the editable notes shown next to each plan: one bullet per
service, product and lab test, with indented detail lines.
"""

import re
import uuid
from typing import Any

from voxplan.core.models import CostOption, PlanProduct, PlanService, TreatmentPlan

_PRODUCT_DETAIL_FIELDS = ("composition", "dosage", "frequency", "duration", "route", "instruction")


def new_planner_session_id() -> str:
    """Fresh id for one planning request."""
    return str(uuid.uuid4())


def labelize(key: str) -> str:
    """``cost_per_session`` -> ``Cost Per Session``."""
    return re.sub(
        r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:], key.replace("_", " ")
    )


def _display(value: Any) -> str:
    return "-" if value is None else str(value)


def _format_specs(specs: dict[str, Any]) -> str:
    return "\n".join(f"    - {key}: {value}" for key, value in specs.items())


def _format_cost_options(options: list[CostOption]) -> str:
    return "\n".join(
        f"    - session: {_display(o.session)}, cost_per_session: {_display(o.cost_per_session)}, "
        f"grafts: {_display(o.grafts)}, weight: {_display(o.weight)}"
        for o in options
    )


def _format_service(service: PlanService) -> str:
    cost_text = _format_cost_options(service.service_cost_variable_options)
    lines = [
        f"• Service: {service.service_name or 'Service'}",
        _format_specs(service.specifications),
        "    - cost options:" if cost_text else "",
        cost_text,
    ]
    return "\n".join(line for line in lines if line)


def _format_product(product: PlanProduct) -> str:
    details = [
        f"    - {field}: {getattr(product, field)}"
        for field in _PRODUCT_DETAIL_FIELDS
        if getattr(product, field)
    ]
    name = product.product_name or product.name or "Product"
    return "\n".join([f"• Product: {name}", *details])


def format_plan_notes(plan: TreatmentPlan) -> str:
    """Render a plan as indented plain text, headed by its name."""
    sections = [
        "\n".join(_format_service(s) for s in plan.services),
        "\n".join(_format_product(p) for p in plan.products),
        "\n".join(f"• Lab: {lab.lab_test_name or lab.name or 'Lab Test'}" for lab in plan.lab_tests),
    ]
    title = plan.plan_name or f"Plan {plan.plan_id}"
    return f"{title}\n" + "\n".join(s for s in sections if s)
