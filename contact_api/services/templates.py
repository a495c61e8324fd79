"""
Email rendering for the contact pipeline.

One renderer, several template sets. Each TemplateVariant maps to a
directory under contact_api/templates holding owner_notification.html and
autoresponder.html; the plain-text bodies are shared. Jinja2 autoescaping
is on for every .html template so submitted text cannot inject markup.
"""

from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from contact_api.models.contact import ContactSubmission

AUTORESPONDER_SUBJECT = "🔥 Your Business Deserves the Future: Let's Build It Together"

PALETTE = {
    "card_bg": "#0f1b33",
    "header_bg": "#0d172a",
    "text": "#e6eefc",
    "text_sub": "#c6d5f7",
    "text_muted": "#8fa3c6",
    "btn_bg": "#18356d",
    "btn_text": "#ffffff",
    "chip_bg": "#0c1730",
    "chip_border": "#29406e",
    "border": "#213055",
    "accent": "#9cc6ff",
}

SERVICE_CARDS = [
    {
        "key": "crypto",
        "title": "Blockchain & Crypto",
        "body": "Loyalty points as tokens, branded coins, wallet login, and gated experiences.",
        "cta": "Explore Crypto",
    },
    {
        "key": "web",
        "title": "Websites (Web2 + Web3)",
        "body": "Creator-grade React/Next builds with optional wallet connect & on-chain perks.",
        "cta": "See Web Builds",
    },
    {
        "key": "ai",
        "title": "AI Chatbots & Automation",
        "body": "Answer customers 24/7 and automate ops from lead to CRM to follow-up.",
        "cta": "Automate With AI",
    },
    {
        "key": "seo",
        "title": "SEO + AEO Growth",
        "body": "Technical SEO + Answer-Engine Optimization to win Google and AI answers.",
        "cta": "Grow Traffic",
    },
]


class TemplateVariant(str, Enum):
    BRANDED = "branded"
    MINIMAL = "minimal"


def header_text(value: str) -> str:
    """Collapse line breaks and runs of whitespace so user text is safe in a header"""
    return " ".join(value.split())


class RenderedEmail(NamedTuple):
    subject: str
    html: str
    text: str


_env = Environment(
    loader=PackageLoader("contact_api", "templates"),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class EmailRenderer:
    def __init__(
        self,
        variant: TemplateVariant = TemplateVariant.BRANDED,
        links: Optional[Dict[str, str]] = None,
        booking_link: Optional[str] = None,
        brand_name: str = "Gator Engineered Technologies",
    ):
        self.variant = TemplateVariant(variant)
        self.links = links or {}
        self.booking_link = booking_link or "#"
        self.brand_name = brand_name

    def _render(self, name: str, context: Dict[str, Any]) -> Dict[str, str]:
        context = dict(context, palette=PALETTE)
        html = _env.get_template(f"{self.variant.value}/{name}.html").render(**context)
        text = _env.get_template(f"{name}.txt").render(**context)
        return {"html": html, "text": text}

    def _cards(self):
        return [dict(card, href=self.links.get(card["key"]) or self.booking_link) for card in SERVICE_CARDS]

    def owner_notification(self, submission: ContactSubmission) -> RenderedEmail:
        context = {
            "brand_name": self.brand_name,
            "submission": submission,
            "has_website": "Yes" if submission.hasWebsite else "No",
        }
        body = self._render("owner_notification", context)
        subject = f"New contact: {header_text(submission.name)} ({submission.email})"
        return RenderedEmail(subject=subject, html=body["html"], text=body["text"])

    def autoresponder(self, submission: ContactSubmission) -> RenderedEmail:
        context = {
            "brand_name": self.brand_name,
            "name": submission.name or "there",
            "message": submission.message,
            "cards": self._cards(),
            "booking_link": self.booking_link,
        }
        body = self._render("autoresponder", context)
        return RenderedEmail(subject=AUTORESPONDER_SUBJECT, html=body["html"], text=body["text"])
