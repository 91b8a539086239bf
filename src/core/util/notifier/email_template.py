"""
Built-in notification templates.

Placeholders use the {{name}} form and are filled by pure string
substitution; an unknown placeholder is left in the output as written.

Supported placeholders:
    {{alert.title}} {{alert.message}} {{alert.severity}} {{alert.source}}
    {{alert.created_at}} {{alert.id}} {{datetime}} {{date}} {{time}}
"""

import re
from dataclasses import dataclass
from datetime import datetime

from core.model.enum.alert_enum import TemplateKind
from core.schema.alert_schema import AlertModel
from core.util.time_util import to_iso, utc_now

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")

FOOTER = "Herald Alert System - {{datetime}}"


@dataclass(frozen=True)
class EmailTemplate:
    kind: TemplateKind
    name: str
    subject: str
    html_body: str
    text_body: str


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


_HTML_LAYOUT = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>%(heading)s</title>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: %(color)s; color: white; padding: 20px; text-align: center; }
        .content { background: #f9f9f9; padding: 20px; }
        .alert-info { background: white; padding: 15px; border-left: 4px solid %(color)s; margin: 15px 0; }
        .footer { background: #374151; color: white; padding: 15px; text-align: center; font-size: 12px; }
        .severity { font-weight: bold; text-transform: uppercase; color: %(color)s; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>%(heading)s</h1></div>
        <div class="content">
            <div class="alert-info">
                <h2>{{alert.title}}</h2>
                <p><strong>Severity:</strong> <span class="severity">{{alert.severity}}</span></p>
                <p><strong>Source:</strong> {{alert.source}}</p>
                <p><strong>Time:</strong> {{alert.created_at}}</p>
                <p><strong>Alert ID:</strong> {{alert.id}}</p>
                <div><strong>Message:</strong><p>{{alert.message}}</p></div>
            </div>
            <p>%(note)s</p>
        </div>
        <div class="footer">%(footer)s</div>
    </div>
</body>
</html>"""

_TEXT_LAYOUT = """%(heading)s: {{alert.title}}

Severity: {{alert.severity}}
Source: {{alert.source}}
Time: {{alert.created_at}}
Alert ID: {{alert.id}}

Message:
{{alert.message}}

%(note)s

%(footer)s"""


def _build(kind: TemplateKind, name: str, subject: str, heading: str, color: str, note: str) -> EmailTemplate:
    values = {"heading": heading, "color": color, "note": note, "footer": FOOTER}
    return EmailTemplate(
        kind=kind,
        name=name,
        subject=subject,
        html_body=_HTML_LAYOUT % values,
        text_body=_TEXT_LAYOUT % {**values, "heading": heading.upper()},
    )


TEMPLATES: dict[TemplateKind, EmailTemplate] = {
    TemplateKind.CRITICAL: _build(
        TemplateKind.CRITICAL,
        "Critical Alert",
        "CRITICAL ALERT: {{alert.title}}",
        "Critical Alert",
        "#dc2626",
        "This is a critical alert that requires immediate attention. Please investigate and take appropriate action.",
    ),
    TemplateKind.WARNING: _build(
        TemplateKind.WARNING,
        "Warning Alert",
        "WARNING: {{alert.title}}",
        "Warning Alert",
        "#d97706",
        "This warning should be reviewed soon to prevent potential issues.",
    ),
    TemplateKind.INFO: _build(
        TemplateKind.INFO,
        "Info Alert",
        "INFO: {{alert.title}}",
        "Information Alert",
        "#2563eb",
        "This is an informational alert for your awareness.",
    ),
    TemplateKind.RESOLVED: _build(
        TemplateKind.RESOLVED,
        "Alert Resolved",
        "RESOLVED: {{alert.title}}",
        "Alert Resolved",
        "#16a34a",
        "This alert has been resolved. No further action is required.",
    ),
}


def get_template(kind: str | TemplateKind) -> EmailTemplate:
    """Unknown kinds fall back to the info template."""
    try:
        return TEMPLATES[TemplateKind(kind)]
    except ValueError:
        return TEMPLATES[TemplateKind.INFO]


def render_template(template: str, alert: AlertModel, now: datetime | None = None) -> str:
    now = now or utc_now()
    values: dict[str, str] = {
        "alert.title": alert.title,
        "alert.message": alert.message,
        "alert.severity": str(alert.severity),
        "alert.source": alert.source,
        "alert.created_at": alert.created_at or "",
        "alert.id": alert.id,
        "datetime": to_iso(now),
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H:%M:%S"),
    }

    def _substitute(match: re.Match) -> str:
        return values.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_substitute, template)


def render_email(alert: AlertModel, kind: str | TemplateKind, now: datetime | None = None) -> RenderedEmail:
    template = get_template(kind)
    now = now or utc_now()
    return RenderedEmail(
        subject=render_template(template.subject, alert, now),
        html=render_template(template.html_body, alert, now),
        text=render_template(template.text_body, alert, now),
    )


def html_to_text(html: str) -> str:
    """Plain-text fallback for transports that were handed HTML only."""
    text = re.sub(r"<(style|script)[^>]*>.*?</\1>", "", html, flags=re.S | re.I)
    text = re.sub(r"<br\s*/?>|</p>|</h\d>|</div>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"[ \t]+", " ", text)
    return re.sub(r"\n\s*\n+", "\n\n", text).strip()
