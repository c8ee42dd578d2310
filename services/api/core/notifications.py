# services/api/core/notifications.py
"""
Operator notification for new client submissions.

The summary is built once as a list of Blocks and rendered twice
(plaintext and HTML) so both bodies always carry the same content.
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from settings import get_settings

from .email_sender import send_email

logger = logging.getLogger(__name__)

NOT_PROVIDED = "Not provided"
SUBJECT = "New Client Information Form Submission"
FOOTER = "This email was sent automatically from the client information form."


@dataclass
class Line:
    label: str
    value: Union[str, List[str]] = ""
    numbered: bool = False
    # list values are URLs; rendered as "<item_label> N: url"
    item_label: Optional[str] = None


@dataclass
class Block:
    title: str
    lines: List[Line] = field(default_factory=list)
    children: List["Block"] = field(default_factory=list)
    empty_note: Optional[str] = None


def _yes_no(v: Any) -> str:
    return "Yes" if v else "No"


def _or_na(v: Any) -> str:
    if v is None:
        return NOT_PROVIDED
    s = str(v).strip()
    return s or NOT_PROVIDED


def _pictures(label: str, urls: List[str], item_label: str = "Picture") -> Line:
    return Line(label, list(urls or []), item_label=item_label)


# ============ Summary model ============


def build_summary(data: Dict[str, Any]) -> List[Block]:
    """Structured summary of one stored submission (all sections)."""
    blocks: List[Block] = []

    years = data.get("years_of_experience")
    basic = Block("Basic Information", [
        Line("Years of Experience", f"{years} years" if years is not None else NOT_PROVIDED),
        Line("Business Email Address", _or_na(data.get("business_email"))),
        Line("Office/Business Address", _or_na(data.get("business_address"))),
        Line("Business Hours", _or_na(data.get("business_hours"))),
        Line("Do you have a license number?", _yes_no(data.get("has_license"))),
    ])
    if data.get("has_license") and data.get("license_number"):
        basic.lines.append(Line("License Number", data["license_number"]))
    blocks.append(basic)

    emergency = Block("Emergency Services", [
        Line("Do you offer emergency services?", _yes_no(data.get("has_emergency_services"))),
    ])
    if data.get("has_emergency_services"):
        emergency.lines.append(
            Line("Do you have a specific phone number for emergencies?", _yes_no(data.get("has_emergency_phone")))
        )
        if data.get("has_emergency_phone") and data.get("emergency_phone"):
            emergency.lines.append(Line("Emergency Phone Number", data["emergency_phone"]))
    blocks.append(emergency)

    about = Block("About Us", [
        Line("About Us Section Customization", _yes_no(data.get("enable_about_modifications"))),
    ])
    if data.get("enable_about_modifications"):
        about.lines += [
            Line("Company Story/Background", _or_na(data.get("company_story"))),
            Line("What Sets You Apart", _or_na(data.get("unique_selling_points"))),
            Line("Specific Specialties", _or_na(data.get("specialties"))),
        ]
    blocks.append(about)

    services = Block("Services", empty_note="No services added")
    for i, s in enumerate(data.get("services") or [], start=1):
        services.children.append(Block(f"Service {i}", [
            Line("Name", _or_na(s.get("name"))),
            Line("Description", _or_na(s.get("description"))),
            Line("Executing Steps", _or_na(s.get("steps"))),
            _pictures("Service Pictures", s.get("picture_urls")),
        ]))
    blocks.append(services)

    projects = Block("Previous Projects", empty_note="No projects added")
    for i, p in enumerate(data.get("projects") or [], start=1):
        child = Block(f"Project {i}", [
            Line("Title", _or_na(p.get("title"))),
            Line("Description", _or_na(p.get("description"))),
            Line("Before/After Photos", _yes_no(p.get("before_after"))),
        ])
        if p.get("before_after"):
            child.lines += [
                _pictures("Before Pictures", p.get("before_picture_urls"), "Before Picture"),
                _pictures("After Pictures", p.get("after_picture_urls"), "After Picture"),
            ]
        else:
            child.lines.append(_pictures("Project Pictures", p.get("picture_urls")))
        child.lines.append(Line("Client Feedback", _or_na(p.get("client_feedback"))))
        projects.children.append(child)
    blocks.append(projects)

    areas = data.get("service_areas") or []
    area_block = Block("Service Areas", empty_note="No service areas added")
    if areas:
        area_block.lines += [
            Line("Areas", [f"{_or_na(a.get('name'))} ({a.get('type') or 'neighborhoods'})" for a in areas]),
            Line("Additional Descriptions/Notes", _or_na(data.get("service_areas_description"))),
        ]
    blocks.append(area_block)

    financing = Block("Financing Options", empty_note="No financing options added")
    for i, o in enumerate(data.get("financing_options") or [], start=1):
        financing.children.append(Block(f"Plan {i}", [
            Line("Plan Title", _or_na(o.get("name"))),
            Line("Full Plan Description", _or_na(o.get("description"))),
            Line("Interest Rate", _or_na(o.get("interest_rate"))),
            Line("Term Length", _or_na(o.get("term_length"))),
            Line("Minimum Amount", _or_na(o.get("minimum_amount"))),
            Line("Qualification Requirements", _or_na(o.get("qualification_requirements"))),
        ]))
    blocks.append(financing)

    storm = Block("Storm Services", empty_note="No storm services added")
    for i, s in enumerate(data.get("storm_services") or [], start=1):
        storm.children.append(Block(f"Service {i}", [
            Line("Service Name", _or_na(s.get("name"))),
            Line("Service Description", _or_na(s.get("description"))),
            Line("Response Time", _or_na(s.get("response_time"))),
            Line("Insurance Partnership", _or_na(s.get("insurance_partnership"))),
            _pictures("Storm Service Pictures", s.get("picture_urls")),
        ]))
    blocks.append(storm)

    brands = Block("Brands You Work With", empty_note="No brands added")
    if data.get("brands"):
        brands.lines += [
            Line("Brands", list(data["brands"])),
            Line("Additional Notes About Brand Partnerships", _or_na(data.get("brands_additional_notes"))),
        ]
    blocks.append(brands)

    certs = Block("Certifications & Awards", empty_note="No certifications added")
    if data.get("certifications") or data.get("certification_picture_urls"):
        certs.lines += [
            Line("Certifications", list(data.get("certifications") or [])),
            _pictures("Certification Pictures", data.get("certification_picture_urls")),
            Line("Additional Notes About Certifications & Awards", _or_na(data.get("certifications_additional_notes"))),
        ]
    blocks.append(certs)

    install = Block("Installation Process", empty_note="No installation process services added")
    for i, s in enumerate(data.get("installation_process_services") or [], start=1):
        install.children.append(Block(f"Service {i}: {s.get('service_name') or 'Untitled Service'}", [
            Line("Steps", list(s.get("steps") or []), numbered=True),
            _pictures("Installation Pictures", s.get("picture_urls")),
            Line("Additional Notes About Installation Process", _or_na(s.get("additional_notes"))),
        ]))
    blocks.append(install)

    maintenance = Block("Roof Maintenance Guide", [
        Line("Roof Maintenance Guide", _yes_no(data.get("has_maintenance_guide"))),
    ])
    if data.get("has_maintenance_guide"):
        maintenance.lines.append(Line("Maintenance Tips", list(data.get("maintenance_tips") or []), numbered=True))
    blocks.append(maintenance)

    roof = Block("Roof Materials and Brands", [
        Line("Roof Materials and Brands", _yes_no(data.get("has_roof_materials"))),
    ])
    if data.get("has_roof_materials"):
        roof.lines.append(Line(
            "Specific materials and brands you specialize in",
            data.get("roof_materials_specialties") or "No specialties provided",
        ))
    blocks.append(roof)

    warranty = Block("Warranty Coverage", [Line("Warranty Coverage", _yes_no(data.get("has_warranty")))])
    if data.get("has_warranty"):
        for key, label in (
            ("warranty_duration", "Warranty Duration"),
            ("warranty_type", "Warranty Type"),
            ("warranty_coverage_details", "Coverage Details"),
        ):
            if data.get(key):
                warranty.lines.append(Line(label, data[key]))
        if data.get("warranty_terms"):
            warranty.lines.append(Line("Warranty Terms and Conditions", list(data["warranty_terms"]), numbered=True))
        if data.get("warranty_additional_notes"):
            warranty.lines.append(Line("Additional Notes/Description", data["warranty_additional_notes"]))
    blocks.append(warranty)

    insurance = Block("Insurance Coverage", [Line("Insurance Coverage", _yes_no(data.get("has_insurance")))])
    if data.get("has_insurance"):
        if data.get("general_liability"):
            insurance.lines.append(Line("General Liability Amount", data["general_liability"]))
        if data.get("bonded_amount"):
            insurance.lines.append(Line("Bonded Amount", data["bonded_amount"]))
        insurance.lines.append(Line("Workers' Compensation Insurance", _yes_no(data.get("workers_compensation"))))
        if data.get("additional_coverage"):
            insurance.lines.append(Line("Additional Coverage", data["additional_coverage"]))
    blocks.append(insurance)

    notes = Block("Notes/Additional Features", [
        Line("Notes/Additional Features", _yes_no(data.get("has_additional_notes"))),
    ])
    if data.get("has_additional_notes") and data.get("additional_notes"):
        notes.lines.append(Line("Notes", data["additional_notes"]))
    blocks.append(notes)

    return blocks


# ============ Renderers ============


def _list_empty_text(line: Line) -> str:
    if line.item_label:
        return f"No {line.item_label.lower()}s provided"
    return "None provided"


def _text_line(line: Line, indent: str) -> List[str]:
    if isinstance(line.value, str):
        return [f"{indent}{line.label}: {line.value}"]
    if not line.value:
        return [f"{indent}{line.label}: {_list_empty_text(line)}"]
    out = [f"{indent}{line.label}:"]
    for n, item in enumerate(line.value, start=1):
        if line.item_label:
            out.append(f"{indent}  {line.item_label} {n}: {item}")
        elif line.numbered:
            out.append(f"{indent}  {n}. {item}")
        else:
            out.append(f"{indent}  - {item}")
    return out


def _text_block(block: Block, indent: str = "") -> List[str]:
    out = [f"{indent}{block.title}:"] if indent else [block.title.upper(), "-" * len(block.title)]
    inner = indent + "  " if indent else ""
    for line in block.lines:
        out += _text_line(line, inner)
    for child in block.children:
        out += _text_block(child, inner + "  " if indent else "  ")
    if not block.lines and not block.children and block.empty_note:
        out.append(f"{inner}{block.empty_note}")
    return out


def render_text(data: Dict[str, Any], submission_id: Optional[str] = None) -> str:
    parts = ["New Client Information Submission", ""]
    if submission_id:
        parts += [f"Submission ID: {submission_id}", ""]
    for block in build_summary(data):
        parts += _text_block(block)
        parts.append("")
    parts += ["---", FOOTER]
    return "\n".join(parts)


def _html_value(line: Line) -> str:
    if isinstance(line.value, str):
        return html.escape(line.value).replace("\n", "<br/>")
    if not line.value:
        return f"<i>{html.escape(_list_empty_text(line))}</i>"
    tag = "ol" if line.numbered else "ul"
    items = []
    for n, item in enumerate(line.value, start=1):
        if line.item_label:
            url = html.escape(str(item), quote=True)
            items.append(f'<li>{html.escape(line.item_label)} {n}: <a href="{url}">{url}</a></li>')
        else:
            items.append(f"<li>{html.escape(str(item))}</li>")
    return f"<{tag}>{''.join(items)}</{tag}>"


def _html_block(block: Block, level: int = 3) -> str:
    parts = [f"<h{level}>{html.escape(block.title)}</h{level}>"]
    if block.lines:
        parts.append("<ul>")
        for line in block.lines:
            parts.append(f"<li><b>{html.escape(line.label)}:</b> {_html_value(line)}</li>")
        parts.append("</ul>")
    for child in block.children:
        parts.append(_html_block(child, min(level + 1, 6)))
    if not block.lines and not block.children and block.empty_note:
        parts.append(f"<p><i>{html.escape(block.empty_note)}</i></p>")
    return "".join(parts)


def render_html(data: Dict[str, Any], submission_id: Optional[str] = None) -> str:
    parts = ["<h2>New Client Information Submission</h2>"]
    if submission_id:
        parts.append(f"<p>Submission ID: <code>{html.escape(submission_id)}</code></p>")
    parts += [_html_block(block) for block in build_summary(data)]
    parts.append(f"<hr/><p><small>{html.escape(FOOTER)}</small></p>")
    return "".join(parts)


# ============ Delivery ============


async def notify_operator(record: Dict[str, Any]) -> bool:
    """
    E-mail the summary of a stored submission to OPERATOR_EMAIL.

    Never raises: returns False (and logs) when SMTP is not configured or
    sending fails. Runs as a background task after the response is sent.
    """
    settings = get_settings()
    submission_id = record.get("id")

    if not settings.smtp_configured():
        logger.warning(f"SMTP not configured; skipping notification for submission {submission_id}")
        return False

    try:
        body_text = render_text(record, submission_id)
        body_html = render_html(record, submission_id)
    except Exception as e:
        logger.exception(f"Failed to render summary for submission {submission_id}: {e}")
        return False

    ok = await send_email(
        to_email=settings.operator_email,
        subject=SUBJECT,
        body_text=body_text,
        body_html=body_html,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email or settings.smtp_user,
        from_name=settings.smtp_from_name or "Client Intake Form",
        cc_emails=settings.get_always_cc_list() or None,
    )
    if ok:
        logger.info(f"Operator notified for submission {submission_id}")
    else:
        logger.error(f"Email send returned False for submission {submission_id}")
    return ok
