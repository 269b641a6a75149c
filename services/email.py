import logging
import os
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from tasks.email_tasks import send_email_task

logger = logging.getLogger(__name__)

# Jinja2 environment for email templates
_templates_env = Environment(
    loader=FileSystemLoader(searchpath=os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")),
    autoescape=select_autoescape(["html", "xml"]),
)


def send_email(to_email: str, subject: str, body: str) -> None:
    """Queue an email on Celery. Returns immediately; a broker outage is logged, not raised."""
    try:
        send_email_task.delay(to_email, subject, body)
        logger.debug("Email task queued for %s", to_email)
    except Exception as exc:
        logger.error("Could not queue email to %s: %s", to_email, exc)


def render_template(template_path: str, context: Dict[str, Any]) -> str:
    """Render a text template from templates/ directory with provided context."""
    template = _templates_env.get_template(template_path)
    return template.render(**context)


def send_templated_email(to_email: str, subject: str, template_path: str, context: Dict[str, Any]) -> None:
    body = render_template(template_path, context)
    send_email(to_email, subject, body)


def send_order_confirmation(order, customer) -> None:
    if not customer.email:
        return
    send_templated_email(
        customer.email,
        f"Order Confirmed - #{order.order_number}",
        "emails/order_confirmation.txt",
        {"name": customer.name or "there", "order": order},
    )


def send_order_status_update(order, customer, status_label: str, message: str) -> None:
    if not customer.email:
        return
    send_templated_email(
        customer.email,
        f"Order #{order.order_number} - {status_label}",
        "emails/order_status_update.txt",
        {"name": customer.name or "there", "order": order, "status_label": status_label, "message": message},
    )


def send_payment_confirmation(order, customer) -> None:
    if not customer.email:
        return
    send_templated_email(
        customer.email,
        f"Payment received - #{order.order_number}",
        "emails/payment_confirmed.txt",
        {"name": customer.name or "there", "order": order},
    )
